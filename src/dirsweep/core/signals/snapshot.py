"""
Block evidence collected during one attempt.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime


@dataclass
class SignalSnapshot:
    """Append-only block evidence for a single attempt.

    Only the mark/record methods should mutate it: ``blocked`` is never
    cleared once set and ``hard_lockout`` always implies ``blocked``.
    A fresh snapshot says nothing was observed, not that nothing happened.
    """

    blocked: bool = False
    hard_lockout: bool = False
    server_retry_after_ms: int | None = None
    last_block_at: datetime | None = None
    reasons: list[str] = field(default_factory=list)

    def mark_blocked(self, reason: str, at: datetime | None = None) -> None:
        self.blocked = True
        self.last_block_at = at or datetime.now(timezone.utc)
        if reason not in self.reasons:
            self.reasons.append(reason)

    def mark_hard_lockout(self, reason: str, at: datetime | None = None) -> None:
        self.mark_blocked(reason, at)
        self.hard_lockout = True

    def record_retry_after(self, ms: int) -> None:
        """Keep the most recent server-provided wait."""
        if ms > 0:
            self.server_retry_after_ms = ms

    def describe(self) -> str:
        if not self.blocked:
            return "no block signal"
        parts = list(self.reasons)
        if self.server_retry_after_ms is not None:
            parts.append(f"retry-after {self.server_retry_after_ms / 1000:.0f}s")
        return ", ".join(parts)


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a Retry-After header into positive seconds.

    Accepts delta-seconds (decimals tolerated) and HTTP-dates. Returns
    None for missing, malformed, zero or past values.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - (now or datetime.now(timezone.utc))).total_seconds()

    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds
