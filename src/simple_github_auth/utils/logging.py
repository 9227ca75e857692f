"""Logging setup and secret masking."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "simple-github-auth"

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(
    level: int | str = logging.WARNING, stream: TextIO | None = None
) -> logging.Logger:
    """Configure the package root logger.

    Args:
        level: Logging level (name or number) for the package loggers.
        stream: Output stream, ``sys.stderr`` when omitted.

    Returns:
        The configured package root logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    # Replace handlers installed by a previous call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Mask *value*, keeping only the first ``keep_chars`` characters.

    >>> mask_sensitive("gho_abcdefgh", 4)
    'gho_********'
    """
    if not value:
        return ""
    if len(value) <= keep_chars:
        return "*" * len(value)
    return value[:keep_chars] + "*" * (len(value) - keep_chars)
