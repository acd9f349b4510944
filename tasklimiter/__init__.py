"""Bounded-concurrency asyncio task runner with rate limiting and retries."""

from .core import Limiter, ThroughputGate
from .errors import LimiterRetryError
from .runtime.logging import configure_logging
from .runtime.settings_loader import load_settings
from .state import UNLIMITED_RETRIES, RetryItem, SinkErrors, LimiterSettings, PropagateErrors

__version__ = "0.1.0"

__all__ = [
    "UNLIMITED_RETRIES",
    "Limiter",
    "LimiterRetryError",
    "LimiterSettings",
    "PropagateErrors",
    "RetryItem",
    "SinkErrors",
    "ThroughputGate",
    "__version__",
    "configure_logging",
    "load_settings",
]
