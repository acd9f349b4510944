"""Evenly spaced dispatch gate shared by all executions of one limiter."""

from __future__ import annotations

import time
import asyncio
from collections.abc import Callable, Awaitable

TimeFn = Callable[[], float]
SleepFn = Callable[[float], Awaitable[None]]


class ThroughputGate:
    """Admit at most ``rps`` dispatches per second, one period apart.

    Disabled if rps is None or <= 0. The first dispatch is measured from the
    moment the gate is created.
    """

    def __init__(
        self,
        *,
        rps: float | None,
        now_fn: TimeFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self.rps = float(rps) if rps and rps > 0 else None
        self.period_s = 1.0 / self.rps if self.rps else 0.0
        self._now = now_fn or time.monotonic
        self._sleep = sleep_fn or asyncio.sleep
        self._last_dispatch = self._now()

    @property
    def enabled(self) -> bool:
        return self.rps is not None

    @property
    def last_dispatch(self) -> float:
        return self._last_dispatch

    async def wait_turn(self) -> None:
        if not self.enabled:
            return

        # Timers can fire early or late; re-check after every sleep.
        while True:
            elapsed = self._now() - self._last_dispatch
            if elapsed >= self.period_s:
                break
            await self._sleep(self.period_s - elapsed)

        self._last_dispatch = self._now()


__all__ = ["ThroughputGate"]
