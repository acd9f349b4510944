"""Admission, throughput and retry configuration (env names and defaults only)."""

from __future__ import annotations

ENV_LIMIT = "TASKLIMITER_LIMIT"
ENV_MAX_RETRY = "TASKLIMITER_MAX_RETRY"
ENV_RPS = "TASKLIMITER_RPS"
ENV_IDLE_POLL_S = "TASKLIMITER_IDLE_POLL_S"

DEFAULT_LIMIT: int = 10
DEFAULT_MAX_RETRY: int = 0
DEFAULT_RPS: float | None = None

# wait_idle() re-checks the processing flag at this interval.
DEFAULT_IDLE_POLL_S: float = 0.05

DISABLED_VALUES = {"0", "none", "null", "disabled", "disable", "off"}
UNLIMITED_VALUES = {"inf", "infinite", "infinity", "unlimited"}

__all__ = [
    "DEFAULT_IDLE_POLL_S",
    "DEFAULT_LIMIT",
    "DEFAULT_MAX_RETRY",
    "DEFAULT_RPS",
    "DISABLED_VALUES",
    "ENV_IDLE_POLL_S",
    "ENV_LIMIT",
    "ENV_MAX_RETRY",
    "ENV_RPS",
    "UNLIMITED_VALUES",
]
