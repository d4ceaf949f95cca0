"""Central logging configuration for the scheduling service."""

import logging
import os
from typing import Optional

from .core.constants import DEFAULT_LOG_LEVEL

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


def resolve_level(level: Optional[str] = None, *, debug: bool = False) -> int:
    """Pick the root level: LOG_LEVEL env var, then ``level``, then debug/INFO."""
    env_level = os.getenv("LOG_LEVEL", "").upper()
    if env_level in _LEVELS:
        return getattr(logging, env_level)
    if level and str(level).upper() in _LEVELS:
        return getattr(logging, str(level).upper())
    return logging.DEBUG if debug else getattr(logging, DEFAULT_LOG_LEVEL)


def configure_logging(level: Optional[str] = None, *, debug: bool = False) -> None:
    root_level = resolve_level(level, debug=debug)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Keep handlers installed by the host (e.g. gunicorn or pytest).
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    # Werkzeug logs every request at INFO.
    logging.getLogger("werkzeug").setLevel(logging.WARNING if root_level > logging.DEBUG else logging.INFO)
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
    logging.getLogger("src.group_schedule").setLevel(root_level)
