"""Retry bookkeeping for failed tasks."""

from __future__ import annotations

import math
from typing import Any
from dataclasses import dataclass
from collections.abc import Callable

# Pass as ``max_retry`` to retry forever.
UNLIMITED_RETRIES: float = math.inf

TaskFn = Callable[[], Any]


def normalize_max_retry(value: int | float) -> int | None:
    """Return the retry budget as an int, or None for UNLIMITED_RETRIES."""
    if isinstance(value, float) and math.isinf(value):
        if value < 0:
            raise ValueError("max_retry must not be negative")
        return None
    try:
        budget = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"max_retry must be an integer or UNLIMITED_RETRIES, got {value!r}") from exc
    if budget < 0:
        raise ValueError("max_retry must not be negative")
    return budget


@dataclass(slots=True)
class RetryItem:
    """A failed task waiting to be resubmitted.

    ``retries`` counts the attempts still allowed; ``None`` never runs out.
    """

    callback: TaskFn
    retries: int | None
    error: BaseException | None = None

    @property
    def exhausted(self) -> bool:
        return self.retries is not None and self.retries <= 0

    def consume(self) -> None:
        if self.retries is not None:
            self.retries = max(0, self.retries - 1)


__all__ = ["UNLIMITED_RETRIES", "RetryItem", "TaskFn", "normalize_max_retry"]
