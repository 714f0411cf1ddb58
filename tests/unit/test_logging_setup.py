import logging
import logging.handlers

from mqtest.logging_setup import setup_logging


def test_console_only():
    logger = setup_logging(logging.DEBUG)

    assert logger.name == "mqtest"
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]


def test_with_log_file(tmp_path):
    log_file = tmp_path / "logs" / "mqtest.log"

    logger = setup_logging(logging.INFO, log_file=str(log_file))
    logging.getLogger("mqtest.runtime").info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
    assert "mqtest.runtime - INFO - hello" in log_file.read_text()

    # close the file handler before tmp_path goes away
    setup_logging(logging.INFO)
