"""Error propagation strategies (dataclasses only).

A limiter either raises terminal failures out of ``process`` or forwards them
to a caller-supplied sink. The choice is fixed at construction time.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any
from dataclasses import dataclass
from collections.abc import Callable

logger = logging.getLogger(__name__)

ErrorSink = Callable[[BaseException], Any]


@dataclass(frozen=True, slots=True)
class PropagateErrors:
    """Fail fast: the first terminal failure is raised to the caller."""

    @property
    def sinks_errors(self) -> bool:
        return False

    async def report(self, error: BaseException) -> None:
        raise error


@dataclass(frozen=True, slots=True)
class SinkErrors:
    """Forward every terminal failure to ``on_error``; never raise."""

    on_error: ErrorSink

    @property
    def sinks_errors(self) -> bool:
        return True

    async def report(self, error: BaseException) -> None:
        try:
            result = self.on_error(error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("error sink failed while handling %r", error)


ErrorPolicy = PropagateErrors | SinkErrors


def select_policy(on_error: ErrorSink | None) -> ErrorPolicy:
    if on_error is None:
        return PropagateErrors()
    return SinkErrors(on_error)


__all__ = ["ErrorPolicy", "ErrorSink", "PropagateErrors", "SinkErrors", "select_policy"]
