"""
Submission throttling.

The directory service counts searches, not page loads, so the gate only
spaces out the action that submits a search. Typing, navigation and
autocomplete happen before the gate and are not throttled by it.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from dirsweep.core.config.models import MsRange

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
ClockFunc = Callable[[], float]


@dataclass
class GateState:
    """Run-wide gate bookkeeping. ``last_submit_at`` is None until the first submit."""

    last_submit_at: float | None = None
    submissions: int = 0
    total_wait_seconds: float = 0.0


class SubmissionGate:
    """Run-wide minimum spacing between search submits.

    Each call draws a fresh minimum gap from ``spacing``. If less time has
    passed since the previous submit, it sleeps for the remainder plus an
    extra jitter drawn from ``jitter``, then stamps the current time.

    The single-writer design assumes one sweep stream; concurrent callers
    would need to serialize through a lock.
    """

    def __init__(
        self,
        spacing: MsRange,
        jitter: MsRange,
        *,
        rng: random.Random | None = None,
        clock: ClockFunc = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.spacing = spacing
        self.jitter = jitter
        self.state = GateState()
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep

    async def await_turn(self) -> float:
        """Wait until a submit is allowed and record it.

        Returns:
            Seconds slept (0.0 when no wait was needed)
        """
        min_gap = self.spacing.draw(self._rng) / 1000
        waited = 0.0

        if self.state.last_submit_at is not None:
            elapsed = self._clock() - self.state.last_submit_at
            if elapsed < min_gap:
                waited = min_gap - elapsed + self.jitter.draw(self._rng) / 1000
                logger.info(f"Submit gate: sleeping {waited:.0f}s to respect global pacing")
                await self._sleep(waited)

        self.state.last_submit_at = self._clock()
        self.state.submissions += 1
        self.state.total_wait_seconds += waited
        return waited

    def stats(self) -> dict[str, float | int | None]:
        """Get gate statistics."""
        return {
            "submissions": self.state.submissions,
            "total_wait_seconds": round(self.state.total_wait_seconds, 3),
            "last_submit_at": self.state.last_submit_at,
        }
