"""CLI command modules."""

from . import config, sweep

__all__ = [
    "config",
    "sweep",
]
