"""Limiter settings (dataclasses only)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LimiterSettings:
    limit: int
    max_retry: int | None
    rps: float | None
    idle_poll_interval_s: float


__all__ = ["LimiterSettings"]
