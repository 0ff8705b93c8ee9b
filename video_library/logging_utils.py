"""Logging utilities (simple wrapper)."""

from __future__ import annotations
import logging
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger(verbose: bool = False) -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        logger = logging.getLogger("video_library")
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        _LOGGER = logger
    if verbose:
        _LOGGER.setLevel(logging.DEBUG)
    return _LOGGER
