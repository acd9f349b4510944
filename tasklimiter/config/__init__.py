"""Configuration module exports (env names and defaults only)."""

from .limits import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_RETRY,
    DEFAULT_IDLE_POLL_S,
)

__all__ = [
    "DEFAULT_IDLE_POLL_S",
    "DEFAULT_LIMIT",
    "DEFAULT_MAX_RETRY",
]
