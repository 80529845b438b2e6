"""
Collection agent contract.

The orchestration core drives any agent through this interface and never
touches selectors, typing or extraction itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

if TYPE_CHECKING:
    from dirsweep.core.normalize.records import Record
    from dirsweep.core.signals.aggregator import SignalMonitor


@dataclass
class AttemptContext:
    """Everything an agent needs for one search attempt."""

    target: str
    attempt: int
    monitor: SignalMonitor
    # Must be awaited immediately before the action the service counts
    before_submit: Callable[[], Awaitable[Any]]


class CollectionAgent(ABC):
    """Performs one full search-and-extract cycle for a target."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent identifier."""
        pass

    @abstractmethod
    async def run(self, ctx: AttemptContext, page: Any) -> list[Record]:
        """Search for ``ctx.target`` on ``page`` and return its records.

        Raises on any fatal interaction error (navigation, timeout,
        selector, block); the caller decides whether to retry.
        """
        pass
