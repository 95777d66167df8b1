from __future__ import annotations

import logging
import sys

"""Console logging for bill ingestion runs.

Every line goes to stdout as "LABEL message" (INFO|WARN|ERROR|SUMMARY, plus DEBUG
with --debug). The single handler hangs off the package logger "usps_easypost";
module loggers (logging.getLogger(__name__)) reach it through propagation, so the
adapter's account mismatch warnings and the orchestrator's per-file lines share
one stream with the final SUMMARY line.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "enable_debug",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "usps_easypost"

# Between INFO=20 and WARNING=30
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach the labeled stdout handler to the package logger.

    Idempotent: a second call returns the configured logger untouched. The handler
    binds sys.stdout at call time, so call reset_logging() first when stdout has been
    swapped (pytest capsys).
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    _apply_level(logger, level)

    # ルートロガーへ流すと二重出力になる
    logger.propagate = False

    _logger = logger
    return logger


def _apply_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def enable_debug() -> logging.Logger:
    """Switch the package logger and its handler to DEBUG (CLI --debug)."""
    logger = get_logger()
    _apply_level(logger, logging.DEBUG)
    return logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Emit one SUMMARY line; the label is added by the formatter."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger so the next setup_logging() rebuilds the handler."""
    global _logger
    _logger = None
