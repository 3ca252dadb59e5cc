"""Logging configuration helpers for the deal analytics project."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that flood DEBUG output with connection chatter.
NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    mapping = logging.getLevelNamesMapping()
    name = level.strip().upper()
    if name not in mapping:
        raise ValueError(f"Unknown log level: {level}")
    return mapping[name]


def configure_logging(level: str | int | None = None, *, force: bool = False) -> None:
    """Configure the root logger for console output.

    The level defaults to ``NSE_DEALS_LOG_LEVEL`` and falls back to INFO when
    that is unset or not a valid level name. HTTP client libraries are held at
    WARNING whatever the root level is.
    """

    requested = level if level is not None else os.getenv("NSE_DEALS_LOG_LEVEL", "INFO")
    try:
        resolved_level = _coerce_level(requested)
    except ValueError:
        resolved_level = logging.INFO

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        root_logger.setLevel(resolved_level)
        return

    logging.basicConfig(level=resolved_level, format=LOG_FORMAT, force=force)


__all__ = ["LOG_FORMAT", "configure_logging"]
