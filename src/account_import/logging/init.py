from __future__ import annotations

import logging
import sys
import threading

"""Labeled stdout logging for the account importer.

Every line starts with its label (INFO | WARN | ERROR | SUMMARY, DEBUG with
--debug) so the CLI output stays a single greppable stream. In debug mode lines
emitted from row worker threads also carry the thread name, which makes the
interleaving of concurrent row tasks visible:

    DEBUG [row_3] users row 5: store check email
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "enable_debug",
    "reset_logging",
]

LOGGER_NAME = "account_import"
SUMMARY_LEVEL = 25  # INFO < SUMMARY < WARNING

_logger: logging.Logger | None = None
_setup_lock = threading.Lock()


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def __init__(self, show_thread: bool = False) -> None:
        super().__init__()
        self.show_thread = show_thread

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        msg = record.getMessage()
        if self.show_thread and record.threadName != "MainThread":
            msg = f"[{record.threadName}] {msg}"
        if record.exc_info and self.show_thread:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"
        return f"{label} {msg}"


def setup_logging() -> logging.Logger:
    """Configure the `account_import` logger once and return it.

    Module loggers (logging.getLogger(__name__) inside the package) are its
    children and write through its single stdout handler.
    """
    global _logger
    with _setup_lock:
        if _logger is not None:
            return _logger

        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.INFO)
        for h in logger.handlers[:]:
            logger.removeHandler(h)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)
        handler.setFormatter(LabeledFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        _logger = logger
        return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def enable_debug() -> None:
    """Lower the threshold to DEBUG and tag worker-thread lines."""
    logger = get_logger()
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)
        h.setFormatter(LabeledFormatter(show_thread=True))
    logger.debug("debug mode enabled")


def log_summary(message: str) -> None:
    """Log at SUMMARY level (the label supplies the `SUMMARY ` prefix)."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger. Mainly for tests."""
    global _logger
    _logger = None
