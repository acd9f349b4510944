from .settings import LimiterSettings
from .retry import UNLIMITED_RETRIES, RetryItem, normalize_max_retry
from .policy import ErrorPolicy, SinkErrors, PropagateErrors, select_policy

__all__ = [
    "UNLIMITED_RETRIES",
    "ErrorPolicy",
    "LimiterSettings",
    "PropagateErrors",
    "RetryItem",
    "SinkErrors",
    "normalize_max_retry",
    "select_policy",
]
