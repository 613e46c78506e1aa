"""Application and network logging."""
import logging
import sys

from sessiongeo.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _stream_handler(level: int, fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def build_logger(name: str, level: int) -> logging.Logger:
    """Return a non-propagating logger with a single stdout handler."""
    configured = logging.getLogger(name)
    configured.setLevel(level)
    if not configured.handlers:
        configured.addHandler(_stream_handler(level, LOG_FORMAT))
    configured.propagate = False
    return configured


_level = logging.INFO if settings.is_production else logging.DEBUG

logger = build_logger("sessiongeo", _level)

# Fetch records go to their own sink so they never mix with the session trace
network_logger = logger.getChild("network")
network_logger.setLevel(_level)

__all__ = ["logger", "network_logger", "build_logger"]
