"""Bounded-concurrency task runner with optional throughput cap and retries.

Work is admitted in batches: the limiter fills up to ``limit`` in-flight tasks,
drains the whole batch, then refills. Items are taken from the end of each
submission, so within one call tasks start in reverse submission order.
Failed tasks are collected per cycle and resubmitted once the cycle drains,
under the same concurrency and rate caps as fresh work.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any
from collections.abc import Iterable

from tasklimiter.state.settings import LimiterSettings
from tasklimiter.state.policy import ErrorSink, ErrorPolicy, select_policy
from tasklimiter.errors import LimiterRetryError, RETRY_LIMIT_EXCEEDED_MESSAGE
from tasklimiter.state.retry import TaskFn, RetryItem, UNLIMITED_RETRIES, normalize_max_retry
from tasklimiter.config.limits import DEFAULT_RPS, DEFAULT_LIMIT, DEFAULT_MAX_RETRY, DEFAULT_IDLE_POLL_S

from .throttle import ThroughputGate

logger = logging.getLogger(__name__)

Submittable = TaskFn | RetryItem


def _retrieve_detached(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("suppressed error from detached task: %r", error)


class Limiter:
    def __init__(
        self,
        *,
        limit: int = DEFAULT_LIMIT,
        max_retry: int | float = DEFAULT_MAX_RETRY,
        rps: float | None = DEFAULT_RPS,
        on_error: ErrorSink | None = None,
        idle_poll_interval_s: float = DEFAULT_IDLE_POLL_S,
    ) -> None:
        self._limit = max(1, int(limit))
        self._max_retry = normalize_max_retry(max_retry)
        self._gate = ThroughputGate(rps=rps)
        self._policy: ErrorPolicy = select_policy(on_error)
        self._idle_poll_interval_s = max(0.001, float(idle_poll_interval_s))

        self._in_flight_count = 0
        self._in_flight: dict[asyncio.Task[Any], None] = {}
        # Bumped when a failed drain abandons its batch; late settlements from
        # an older generation must not touch the counter.
        self._generation = 0
        self._active_calls = 0

    @classmethod
    def from_settings(cls, settings: LimiterSettings, *, on_error: ErrorSink | None = None) -> Limiter:
        return cls(
            limit=settings.limit,
            max_retry=UNLIMITED_RETRIES if settings.max_retry is None else settings.max_retry,
            rps=settings.rps,
            on_error=on_error,
            idle_poll_interval_s=settings.idle_poll_interval_s,
        )

    @property
    def length(self) -> int:
        """Number of admitted tasks that have not settled yet."""
        return self._in_flight_count

    @property
    def is_processing(self) -> bool:
        return self._active_calls > 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def max_retry(self) -> int | None:
        return self._max_retry

    @property
    def rps(self) -> float | None:
        return self._gate.rps

    def __len__(self) -> int:
        return self._in_flight_count

    async def process(self, *tasks: Submittable) -> None:
        """Run ``tasks`` and return once all of them, retries included, are finished.

        Without an ``on_error`` sink the first terminal failure is raised: the
        task's own error when retries are off, otherwise a LimiterRetryError.
        With a sink, nothing is raised and every terminal failure is reported.
        """
        items = self._coerce(tasks)
        self._active_calls += 1
        try:
            await self._process(items)
        finally:
            self._leave()

    def submit(self, *tasks: Submittable) -> asyncio.Task[None]:
        """Schedule ``tasks`` in the background and return the driving task.

        The limiter counts as processing from this call on, so ``wait_idle``
        can be used as a join point right away.
        Without an ``on_error`` sink a failure is raised from the returned task
        and also logged, since callers joining via ``wait_idle`` never see it.
        """
        items = self._coerce(tasks)
        self._active_calls += 1
        job = asyncio.create_task(self._process(items))
        job.add_done_callback(self._finish_job)
        return job

    async def wait_idle(self) -> None:
        while self.is_processing:
            await asyncio.sleep(self._idle_poll_interval_s)

    def _leave(self) -> None:
        self._active_calls = max(0, self._active_calls - 1)

    def _finish_job(self, job: asyncio.Task[None]) -> None:
        self._leave()
        if job.cancelled():
            return
        error = job.exception()
        if error is not None:
            logger.error("background submission failed: %r", error, exc_info=error)

    @staticmethod
    def _coerce(tasks: Iterable[Any]) -> list[Submittable]:
        items = list(tasks)
        for item in items:
            if not isinstance(item, RetryItem) and not callable(item):
                raise TypeError(f"expected a zero-argument callable or RetryItem, got {type(item).__name__}")
        return items

    async def _process(self, items: list[Submittable]) -> None:
        cycle = 0
        while items:
            retry_queue: list[RetryItem] = []
            await self._run_cycle(items, retry_queue)
            items = await self._collect_retries(retry_queue)
            cycle += 1
            if items:
                logger.debug("retry cycle %d: resubmitting %d task(s)", cycle, len(items))

    async def _run_cycle(self, items: list[Submittable], retry_queue: list[RetryItem]) -> None:
        while items:
            item = items.pop()
            while self._in_flight_count >= self._limit and self._in_flight:
                await self._drain()
            self._admit(item, retry_queue)

        if self._in_flight:
            await self._drain()

    def _admit(self, item: Submittable, retry_queue: list[RetryItem]) -> None:
        self._in_flight_count += 1
        task = asyncio.create_task(self._execute(item, retry_queue, self._generation))
        self._in_flight[task] = None

    async def _execute(self, item: Submittable, retry_queue: list[RetryItem], generation: int) -> Any:
        callback = item.callback if isinstance(item, RetryItem) else item
        try:
            await self._gate.wait_turn()
            result = callback()
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as exc:
            if self._max_retry == 0:
                raise
            retries = item.retries if isinstance(item, RetryItem) else self._max_retry
            retry_queue.append(RetryItem(callback=callback, retries=retries, error=exc))
            return None
        finally:
            if generation == self._generation:
                self._in_flight_count -= 1

    async def _drain(self) -> None:
        batch = list(self._in_flight)
        if not batch:
            return

        if self._policy.sinks_errors:
            await asyncio.wait(batch)
            # Concurrent drains may share a snapshot; report only what this one claims.
            for task in self._forget(batch):
                if task.cancelled():
                    continue
                error = task.exception()
                if error is not None:
                    await self._policy.report(error)
            return

        done, _pending = await asyncio.wait(batch, return_when=asyncio.FIRST_EXCEPTION)
        failed = next(
            (task for task in batch if task in done and not task.cancelled() and task.exception() is not None),
            None,
        )
        if failed is None:
            self._forget(batch)
            return

        error = failed.exception()
        self._in_flight.pop(failed, None)
        self._abandon_in_flight()
        logger.debug("drain aborted by task failure: %r", error)
        await self._policy.report(error)

    def _forget(self, batch: list[asyncio.Task[Any]]) -> list[asyncio.Task[Any]]:
        claimed: list[asyncio.Task[Any]] = []
        for task in batch:
            if task in self._in_flight:
                del self._in_flight[task]
                claimed.append(task)
        return claimed

    def _abandon_in_flight(self) -> None:
        """Reset bookkeeping after a fail-fast drain so the limiter stays usable."""
        self._generation += 1
        self._in_flight_count = 0
        orphans = list(self._in_flight)
        self._in_flight.clear()
        for task in orphans:
            if task.done():
                _retrieve_detached(task)
            else:
                task.add_done_callback(_retrieve_detached)

    async def _collect_retries(self, retry_queue: list[RetryItem]) -> list[Submittable]:
        resubmit: list[Submittable] = []
        while retry_queue:
            item = retry_queue.pop()
            if item.exhausted:
                logger.debug("retry budget exhausted: %r", item.error)
                await self._policy.report(LimiterRetryError(RETRY_LIMIT_EXCEEDED_MESSAGE, item.error))
                continue
            item.consume()
            resubmit.append(item)
        return resubmit


__all__ = ["Limiter", "Submittable"]
