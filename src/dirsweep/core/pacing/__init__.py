"""Pacing utilities - submit gate, signal-driven backoff, adaptive policy."""

from .throttling import GateState, SubmissionGate
from .retries import compute_wait, describe_wait, wait_for_signals
from .policy import AdaptivePolicy

__all__ = [
    "GateState",
    "SubmissionGate",
    "compute_wait",
    "describe_wait",
    "wait_for_signals",
    "AdaptivePolicy",
]
