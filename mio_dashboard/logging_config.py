import logging
import os
import sys
from typing import Optional, TextIO

from tqdm import tqdm

LOGGER_NAME = "mio_dashboard"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that prints through ``tqdm.write``.

    A plain StreamHandler would draw log lines through the middle of the
    progress bar shown while export pages are fetched.
    """

    def __init__(self, level=logging.NOTSET, stream: Optional[TextIO] = None):
        super().__init__(level)
        # Resolved at emit time when unset, so redirected stderr is honoured.
        self.stream = stream

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
            self.flush()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def _file_handler(log_file_path: str) -> logging.FileHandler:
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return logging.FileHandler(log_file_path, encoding='utf-8')


def setup_logger(log_level_str: str, log_file_path: str, log_to_console: bool) -> logging.Logger:
    """
    Configure the ``mio_dashboard`` package logger.

    Modules log through ``logging.getLogger(__name__)``, so the handlers set
    here receive every record the console produces. Calling this again
    replaces the previous handlers.

    Args:
        log_level_str: Level name such as 'INFO' or 'DEBUG'; unknown names mean INFO.
        log_file_path: Log file location. Empty disables the file handler.
        log_to_console: Also print records to stderr.

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level_str.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    handlers = []
    if log_file_path:
        handlers.append(_file_handler(log_file_path))
    if log_to_console:
        handlers.append(TqdmLoggingHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
