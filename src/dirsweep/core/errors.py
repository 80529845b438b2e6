"""
Exception hierarchy for sweep runs.

Only SessionError is allowed to end a run; everything raised inside an
attempt is classified as blocked or failed and retried by the runner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dirsweep.core.signals import SignalSnapshot


class DirsweepError(Exception):
    """Base exception for dirsweep errors."""


class SessionError(DirsweepError):
    """The browser session could not be created or has died."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class BlockDetected(DirsweepError):
    """Block evidence appeared while an attempt was in flight."""


class AttemptError(DirsweepError):
    """One attempt for a target ended without records.

    Carries the signal snapshot collected during the attempt so the
    backoff strategy can size the next wait.
    """

    blocked = False

    def __init__(
        self,
        message: str,
        target: str,
        attempt: int,
        snapshot: SignalSnapshot,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.target = target
        self.attempt = attempt
        self.snapshot = snapshot
        self.cause = cause


class TargetBlocked(AttemptError):
    """Attempt failed with throttle evidence (status, header or content marker)."""

    blocked = True


class TargetFailed(AttemptError):
    """Attempt failed with no block evidence (navigation, timeout, selector)."""
