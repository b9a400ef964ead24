import logging

import pytest

from mio_dashboard.logging_config import LOGGER_NAME, TqdmLoggingHandler, setup_logger


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_file_logging(tmp_path):
    log_path = tmp_path / "logs" / "dashboard.log"

    logger = setup_logger("debug", str(log_path), False)
    logging.getLogger("mio_dashboard.dashboard").debug("cache hit for projects")

    assert logger.level == logging.DEBUG
    assert [type(h) for h in logger.handlers] == [logging.FileHandler]
    logger.handlers[0].flush()
    assert "DEBUG - cache hit for projects" in log_path.read_text(encoding="utf-8")


def test_console_logging_goes_through_tqdm(capsys):
    logger = setup_logger("INFO", "", True)

    logger.info("Fetched 3 page(s)")

    assert [type(h) for h in logger.handlers] == [TqdmLoggingHandler]
    assert "INFO - Fetched 3 page(s)" in capsys.readouterr().err


def test_unknown_level_defaults_to_info():
    logger = setup_logger("LOUD", "", False)

    assert logger.level == logging.INFO
    assert logger.handlers == []


def test_repeated_setup_does_not_duplicate_handlers(tmp_path):
    setup_logger("INFO", str(tmp_path / "a.log"), True)
    logger = setup_logger("INFO", str(tmp_path / "a.log"), True)

    assert len(logger.handlers) == 2
