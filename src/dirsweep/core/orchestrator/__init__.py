"""Orchestrator - per-target retry loop, adaptive batching, run wiring."""

from .runner import TargetOutcome, TargetResult, TargetRunner
from .scheduler import BatchOutcome, BatchScheduler, RunStats
from .sweep import run_sweep

__all__ = [
    "TargetOutcome",
    "TargetResult",
    "TargetRunner",
    "BatchOutcome",
    "BatchScheduler",
    "RunStats",
    "run_sweep",
]
