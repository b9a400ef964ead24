"""
Settings for the console.

Resolution order, later wins: built-in defaults, ``config.yaml`` (or the file
named by ``MIO_DASHBOARD_CONFIG_FILE``), then the ``MIO_*`` environment
variables, which may themselves come from a ``.env`` file.
"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from mio_dashboard.logging_config import setup_logger

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_REQUEST_TIMEOUT = 8.0
DEFAULT_STATE_FILE = os.path.join(os.path.expanduser("~"), ".mio_dashboard", "state.json")
DEFAULT_LOG_FILE = "logs/mio_dashboard.log"

CONFIG_FILE_ENV = "MIO_DASHBOARD_CONFIG_FILE"


@dataclass
class AppConfig:
    project_root: str
    state_file: str
    export_folder: str

    # API connection
    api_url: str
    request_timeout: float
    max_requests_per_second: float

    # Display
    page_size: int
    search_debounce_seconds: float
    preview_row_limit: int


def _package_parent() -> str:
    """Directory holding the ``mio_dashboard`` package; config and .env live here."""
    return os.path.abspath(os.path.join(os.path.dirname(os.path.realpath(__file__)), os.pardir))


def _find_dotenv(project_root: str) -> Tuple[Optional[str], Tuple[str, str]]:
    candidates = (
        os.path.join(project_root, '.env'),
        os.path.join(project_root, 'docker', '.env'),
    )
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate, candidates
    return None, candidates


def _warn(message: str) -> None:
    # Logging is not configured yet while the config file is being read.
    print(message, file=sys.stderr)


def _read_config_file(path: str) -> Dict[str, Any]:
    """
    Parse the YAML settings file.

    Every problem (missing, unreadable, empty, malformed, not a mapping) is
    reported on stderr and yields an empty mapping so defaults apply.
    """
    if not os.path.exists(path):
        _warn(f"Warning: Configuration file '{path}' not found. Using default configuration.\n"
              f"Tip: copy config.yaml.example to config.yaml or set {CONFIG_FILE_ENV}.")
        return {}
    if not os.access(path, os.R_OK):
        _warn(f"Error: Configuration file '{path}' is not readable. Using default configuration.")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as stream:
            loaded = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        _warn(f"Error: Invalid YAML in configuration file '{path}': {e}\nUsing default configuration.")
        return {}
    except OSError as e:
        _warn(f"Error: Could not read configuration file '{path}': {e}\nUsing default configuration.")
        return {}

    if loaded is None:
        _warn(f"Warning: Configuration file '{path}' is empty. Using default configuration.")
        return {}
    if not isinstance(loaded, dict):
        _warn(f"Error: Configuration file '{path}' must contain a YAML dictionary. Using defaults.")
        return {}
    return loaded


def _configure_logging(config: Dict[str, Any]) -> logging.Logger:
    section = config.get('logging') or {}
    return setup_logger(
        str(section.get('log_level', 'INFO')).upper(),
        section.get('log_file_path', DEFAULT_LOG_FILE),
        bool(section.get('log_to_console', False)),
    )


def _float_from_env(name: str, default: float, logger: logging.Logger) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return float(default)
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number. Using %s.", name, raw, default)
        return float(default)


def load_app_config() -> AppConfig:
    """
    Build the configuration for one run of the console.

    Environment variables win over the YAML file: ``MIO_API_URL``,
    ``MIO_REQUEST_TIMEOUT`` and ``MIO_STATE_FILE``.

    Returns:
        AppConfig: The resolved settings.
    """
    project_root = _package_parent()

    dotenv_path, dotenv_candidates = _find_dotenv(project_root)
    if dotenv_path:
        load_dotenv(dotenv_path)

    config_file = os.path.abspath(os.environ.get(CONFIG_FILE_ENV) or os.path.join(project_root, 'config.yaml'))
    config = _read_config_file(config_file)

    logger = _configure_logging(config)
    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.info("No .env file at '%s' or '%s'; using the process environment only.", *dotenv_candidates)

    api_url = os.environ.get('MIO_API_URL') or config.get('api_url') or DEFAULT_API_URL
    if not api_url.startswith(('http://', 'https://')):
        logger.warning("API URL '%s' has no http(s) scheme; requests will most likely fail.", api_url)

    state_file = os.environ.get('MIO_STATE_FILE') or config.get('state_file') or DEFAULT_STATE_FILE

    app_config = AppConfig(
        project_root=project_root,
        state_file=os.path.expanduser(state_file),
        export_folder=config.get('export_folder', '.'),
        api_url=api_url.rstrip('/'),
        request_timeout=_float_from_env(
            'MIO_REQUEST_TIMEOUT', config.get('request_timeout', DEFAULT_REQUEST_TIMEOUT), logger
        ),
        max_requests_per_second=float(config.get('max_requests_per_second', 10)),
        page_size=int(config.get('page_size', 25)),
        search_debounce_seconds=float(config.get('search_debounce_seconds', 0.3)),
        preview_row_limit=int(config.get('preview_row_limit', 50)),
    )
    logger.debug("Loaded configuration from %s: %s", config_file, app_config)
    return app_config
