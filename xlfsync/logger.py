"""
Logging for xlfsync.

Every module logs through get_logger(__name__). Two handlers are attached:
- stdout at INFO: one summary line per refreshed, matched or imported file
- logs/xlfsync.log at DEBUG: per trans-unit decisions (dropped ids, changed
  sources, flagged placeholders), useful when a refresh result looks wrong

Set XLFSYNC_LOG_DIR to write the log file somewhere else.
"""
import logging
import os
import sys

LOG_DIR = os.environ.get(
    "XLFSYNC_LOG_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs"),
)
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FILE = os.path.join(LOG_DIR, "xlfsync.log")

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s() | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Logger for an xlfsync module; handlers are attached only once per name."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return logger


def setup_exception_hook():
    """
    Routes exceptions that escape the CLI's own error handling into the log
    file before the interpreter prints them. Ctrl+C is passed through untouched.
    """
    crash_logger = get_logger("xlfsync.crash")

    def exception_hook(exc_type, exc_value, exc_tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            crash_logger.critical("Unhandled error, the current file may not have been written",
                                  exc_info=(exc_type, exc_value, exc_tb))
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = exception_hook
