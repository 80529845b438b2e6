"""Block signal detection - transport statuses, Retry-After, page markers."""

from .snapshot import SignalSnapshot, parse_retry_after
from .aggregator import SignalAggregator, SignalMonitor

__all__ = [
    "SignalSnapshot",
    "parse_retry_after",
    "SignalAggregator",
    "SignalMonitor",
]
