"""Logging setup shared by the library and the CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached by applications through ``setup_logging``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

__all__ = ["DEFAULT_FORMAT", "get_logger", "setup_logging"]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def setup_logging(
    name: str = "kings_cooking",
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure and return the logger called ``name``.

    Repeated calls update the level but never stack a second stream handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_coerce_level(level))

    has_stream = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "_kings_cooking", False)
        for h in logger.handlers
    )
    if not has_stream:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        handler._kings_cooking = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
