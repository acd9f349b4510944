"""Environment parsing for limiter settings."""

from __future__ import annotations

import os

from tasklimiter.state.settings import LimiterSettings
from tasklimiter.state.retry import normalize_max_retry
from tasklimiter.config.limits import (
    ENV_RPS,
    ENV_LIMIT,
    DEFAULT_RPS,
    DEFAULT_LIMIT,
    ENV_MAX_RETRY,
    DISABLED_VALUES,
    ENV_IDLE_POLL_S,
    UNLIMITED_VALUES,
    DEFAULT_MAX_RETRY,
    DEFAULT_IDLE_POLL_S,
)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _load_rps() -> float | None:
    raw = (os.getenv(ENV_RPS) or "").strip()
    if not raw or raw.lower() in DISABLED_VALUES:
        return DEFAULT_RPS
    try:
        rps = float(raw)
    except Exception:
        return DEFAULT_RPS
    if rps <= 0:
        return None
    return rps


def _load_max_retry() -> int | None:
    raw = (os.getenv(ENV_MAX_RETRY) or "").strip()
    if raw.lower() in UNLIMITED_VALUES:
        return None
    # Negative budgets are a configuration error, not a fallback case.
    return normalize_max_retry(_int_env(ENV_MAX_RETRY, DEFAULT_MAX_RETRY))


def load_settings() -> LimiterSettings:
    limit = max(1, _int_env(ENV_LIMIT, DEFAULT_LIMIT))
    idle_poll = _float_env(ENV_IDLE_POLL_S, DEFAULT_IDLE_POLL_S)
    if idle_poll <= 0:
        idle_poll = DEFAULT_IDLE_POLL_S

    return LimiterSettings(
        limit=limit,
        max_retry=_load_max_retry(),
        rps=_load_rps(),
        idle_poll_interval_s=idle_poll,
    )


__all__ = ["load_settings"]
