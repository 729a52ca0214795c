import os
import logging
from logging.handlers import RotatingFileHandler

LOG_FILE = os.getenv("INSPECTOR_LOG_FILE")
LOG_LEVEL = os.getenv("INSPECTOR_LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _build_handlers(log_file):
    handlers = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=(10 * 1024 * 1024),   # 10MB per file
                backupCount=7,
                encoding="utf-8"
            )
        )
    return handlers


# Root config, left untouched if the host application already configured logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    handlers=_build_handlers(LOG_FILE),
)


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with the given module name."""
    return logging.getLogger(name)
