from __future__ import annotations

import asyncio
import logging

import pytest

from tasklimiter import Limiter


class _FailingConnection:
    def __init__(self, error: BaseException) -> None:
        self.error = error
        self.sends = 0

    async def process(self) -> None:
        self.sends += 1
        raise self.error


@pytest.mark.asyncio
async def test_limiter_raises_first_task_error_by_default() -> None:
    boom = ConnectionError("boom")
    limiter = Limiter(limit=3)
    connections = [_FailingConnection(boom) for _ in range(6)]

    with pytest.raises(ConnectionError) as exc:
        await limiter.process(*(c.process for c in connections))

    assert exc.value is boom
    assert limiter.length == 0
    assert not limiter.is_processing
    assert sum(c.sends for c in connections) == 3


@pytest.mark.asyncio
async def test_limiter_stays_usable_after_a_failed_batch() -> None:
    limiter = Limiter(limit=2)
    done: list[int] = []

    with pytest.raises(ConnectionError):
        await limiter.process(_FailingConnection(ConnectionError("boom")).process)

    async def ok(i: int) -> None:
        done.append(i)

    await limiter.process(*(lambda i=i: ok(i) for i in range(4)))

    assert sorted(done) == [0, 1, 2, 3]
    assert limiter.length == 0


@pytest.mark.asyncio
async def test_detached_tasks_do_not_skew_the_in_flight_count() -> None:
    limiter = Limiter(limit=2)
    finished: list[str] = []

    async def slow() -> None:
        await asyncio.sleep(0.1)
        finished.append("slow")

    async def fail() -> None:
        raise ValueError("fast failure")

    with pytest.raises(ValueError):
        await limiter.process(slow, fail)
    assert limiter.length == 0

    await asyncio.sleep(0.15)
    assert finished == ["slow"]
    assert limiter.length == 0


@pytest.mark.asyncio
async def test_on_error_receives_every_failure_without_raising() -> None:
    errors: list[BaseException] = []
    limiter = Limiter(limit=3, on_error=errors.append)
    connections = [_FailingConnection(ConnectionError(f"boom-{i}")) for i in range(6)]

    await limiter.process(*(c.process for c in connections))

    assert limiter.length == 0
    assert sum(c.sends for c in connections) == 6
    assert len(errors) == 6
    assert {str(e) for e in errors} == {f"boom-{i}" for i in range(6)}


@pytest.mark.asyncio
async def test_async_on_error_is_awaited() -> None:
    errors: list[BaseException] = []

    async def on_error(error: BaseException) -> None:
        await asyncio.sleep(0)
        errors.append(error)

    limiter = Limiter(limit=2, on_error=on_error)
    await limiter.process(*(_FailingConnection(RuntimeError("x")).process for _ in range(3)))

    assert len(errors) == 3


@pytest.mark.asyncio
async def test_failing_sink_is_logged_and_processing_continues(caplog: pytest.LogCaptureFixture) -> None:
    def on_error(error: BaseException) -> None:
        raise RuntimeError("sink broke")

    limiter = Limiter(limit=2, on_error=on_error)
    connections = [_FailingConnection(ValueError("task broke")) for _ in range(4)]

    with caplog.at_level(logging.ERROR, logger="tasklimiter"):
        await limiter.process(*(c.process for c in connections))

    assert all(c.sends == 1 for c in connections)
    assert sum("error sink failed" in r.getMessage() for r in caplog.records) == 4


@pytest.mark.asyncio
async def test_concurrent_submissions_report_each_failure_once() -> None:
    errors: list[BaseException] = []
    limiter = Limiter(limit=2, on_error=errors.append)
    connections = {name: _FailingConnection(ValueError(name)) for name in ("a", "b", "c")}

    limiter.submit(connections["a"].process, connections["b"].process)
    limiter.submit(connections["c"].process)
    await limiter.wait_idle()

    assert sorted(str(e) for e in errors) == ["a", "b", "c"]
    assert all(c.sends == 1 for c in connections.values())
    assert limiter.length == 0


@pytest.mark.asyncio
async def test_background_submission_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    boom = ConnectionError("boom")
    limiter = Limiter(limit=2, idle_poll_interval_s=0.01)

    with caplog.at_level(logging.ERROR, logger="tasklimiter"):
        job = limiter.submit(_FailingConnection(boom).process)
        await limiter.wait_idle()

    assert any("background submission failed" in r.getMessage() for r in caplog.records)
    with pytest.raises(ConnectionError):
        await job
