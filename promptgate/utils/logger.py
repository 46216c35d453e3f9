"""Logging helpers"""

import logging
import sys
from typing import Optional, Union

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the ``promptgate`` namespace."""
    if not name:
        return logging.getLogger("promptgate")
    if name == "promptgate" or name.startswith("promptgate."):
        return logging.getLogger(name)
    return logging.getLogger(f"promptgate.{name}")


def configure_logging(level: Union[int, str] = "INFO") -> logging.Logger:
    """
    Attach a single stderr handler to the ``promptgate`` logger.

    Safe to call repeatedly; the handler is only added once.
    """
    root = get_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    if not any(getattr(h, "_promptgate", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._promptgate = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
