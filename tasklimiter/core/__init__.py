from .limiter import Limiter
from .throttle import ThroughputGate

__all__ = ["Limiter", "ThroughputGate"]
