"""Shared error types for the task limiter."""

from __future__ import annotations

RETRY_LIMIT_EXCEEDED_MESSAGE = "Retry limit exceeded"


class LimiterRetryError(Exception):
    """Raised (or sent to the error sink) when a task runs out of retries.

    The last task error is kept as ``error`` and chained as ``__cause__``; its
    traceback is carried over so the original failure site stays visible.
    """

    def __init__(self, message: str = RETRY_LIMIT_EXCEEDED_MESSAGE, error: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error
        if error is not None:
            self.__cause__ = error
            self.__traceback__ = error.__traceback__

    def __str__(self) -> str:
        if self.error is None:
            return self.message
        return f"{self.message}: {self.error!r}"


__all__ = ["RETRY_LIMIT_EXCEEDED_MESSAGE", "LimiterRetryError"]
