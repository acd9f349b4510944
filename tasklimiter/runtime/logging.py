"""Logging initialization."""

from __future__ import annotations

import logging

from tasklimiter.config.logging import LOG_LEVEL, LOG_FORMAT

PACKAGE_LOGGER = "tasklimiter"


def configure_logging(level: str | None = None) -> None:
    resolved = (level or LOG_LEVEL).strip().upper()
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)


__all__ = ["PACKAGE_LOGGER", "configure_logging"]
