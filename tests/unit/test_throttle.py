from __future__ import annotations

import time
import asyncio

import pytest

from tasklimiter import Limiter, ThroughputGate


class _FakeClock:
    """Manual clock; the first ``early_wakeups`` sleeps only advance half the requested time."""

    def __init__(self, *, early_wakeups: int = 0) -> None:
        self.now = 0.0
        self.early_wakeups = early_wakeups
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.early_wakeups > 0:
            self.early_wakeups -= 1
            seconds /= 2
        self.now += seconds


@pytest.mark.parametrize("rps", [None, 0, -5])
@pytest.mark.asyncio
async def test_gate_is_disabled_without_positive_rps(rps: float | None) -> None:
    clock = _FakeClock()
    gate = ThroughputGate(rps=rps, now_fn=clock.time, sleep_fn=clock.sleep)

    await gate.wait_turn()
    await gate.wait_turn()

    assert not gate.enabled
    assert gate.rps is None
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_gate_spaces_dispatches_one_period_apart() -> None:
    clock = _FakeClock()
    gate = ThroughputGate(rps=4, now_fn=clock.time, sleep_fn=clock.sleep)

    dispatched: list[float] = []
    for _ in range(3):
        await gate.wait_turn()
        dispatched.append(clock.now)

    assert dispatched == [0.25, 0.5, 0.75]
    assert gate.last_dispatch == 0.75


@pytest.mark.asyncio
async def test_gate_rechecks_after_short_sleeps() -> None:
    clock = _FakeClock(early_wakeups=1)
    gate = ThroughputGate(rps=4, now_fn=clock.time, sleep_fn=clock.sleep)

    await gate.wait_turn()

    assert clock.sleeps == [0.25, 0.125]
    assert gate.last_dispatch == 0.25


@pytest.mark.asyncio
async def test_gate_does_not_wait_once_period_has_elapsed() -> None:
    clock = _FakeClock()
    gate = ThroughputGate(rps=4, now_fn=clock.time, sleep_fn=clock.sleep)
    clock.now = 5.0

    await gate.wait_turn()

    assert clock.sleeps == []
    assert gate.last_dispatch == 5.0


@pytest.mark.parametrize("limit", [2, 20])
@pytest.mark.asyncio
async def test_limiter_rps_requests_are_evenly_distributed(limit: int) -> None:
    rps = 50
    period = 1.0 / rps
    limiter = Limiter(limit=limit, rps=rps)
    timestamps: list[float] = []

    async def task() -> None:
        timestamps.append(time.monotonic())
        await asyncio.sleep(0)

    await limiter.process(*([task] * 15))

    assert len(timestamps) == 15
    gaps = [b - a for a, b in zip(timestamps[:-1], timestamps[1:])]
    assert min(gaps) >= period * 0.9
    assert period * 0.95 <= sum(gaps) / len(gaps) <= period + 0.005
    assert limiter.rps == rps
