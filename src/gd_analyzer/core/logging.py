"""Logging setup shared by the HTTP service and the offline scripts."""

import logging
import sys
from pathlib import Path

LOG_NAMESPACE = "gd_analyzer"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers held at WARNING regardless of the configured level
_QUIET_LOGGERS = ("mediapipe", "absl", "uvicorn.access")


def _build_handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure the application loggers and route uvicorn through them.

    Safe to call more than once: handlers are replaced, not stacked.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    handlers = _build_handlers(log_file)

    # uvicorn runs with log_config=None, so its records share our format
    for name in (LOG_NAMESPACE, "uvicorn"):
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        logger.handlers = list(handlers)
        logger.propagate = False

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the application namespace.

    Args:
        name: Module name (typically __name__; scripts pass "__main__")

    Returns:
        Logger that inherits the handlers set by setup_logging
    """
    if not name.startswith(LOG_NAMESPACE):
        name = f"{LOG_NAMESPACE}.{name}"

    return logging.getLogger(name)
