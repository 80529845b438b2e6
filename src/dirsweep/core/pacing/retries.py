"""
Backoff sizing driven by block signals.

compute_wait() picks the wait before the next attempt from the evidence
the failed attempt collected; wait_for_signals plugs it into tenacity.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from tenacity import RetryCallState
from tenacity.wait import wait_base

from dirsweep.core.errors import AttemptError
from dirsweep.core.signals.snapshot import SignalSnapshot

if TYPE_CHECKING:
    from dirsweep.core.config.models import PacingConfig

logger = logging.getLogger(__name__)


def compute_wait(
    snapshot: SignalSnapshot,
    attempt_number: int,
    config: PacingConfig,
    rng: random.Random | None = None,
) -> int:
    """Milliseconds to wait after failed attempt ``attempt_number`` (1-based).

    First match wins:
    1. a server Retry-After value, already jittered, used verbatim;
    2. a hard lockout, a long cooldown drawn from ``hard_lockout_cooldown``;
    3. ``base_backoff_ms * 2 ** (attempt_number - 1)`` plus ``backoff_jitter``.
    """
    rng = rng or random.Random()

    if snapshot.server_retry_after_ms is not None:
        return snapshot.server_retry_after_ms

    if snapshot.hard_lockout:
        return config.hard_lockout_cooldown.draw(rng)

    exponent = max(0, attempt_number - 1)
    return config.base_backoff_ms * 2 ** exponent + config.backoff_jitter.draw(rng)


def describe_wait(snapshot: SignalSnapshot) -> str:
    if snapshot.server_retry_after_ms is not None:
        return "honoring Retry-After"
    if snapshot.hard_lockout:
        return "hard lockout cooldown"
    return "exponential backoff"


class wait_for_signals(wait_base):
    """Tenacity wait strategy reading the snapshot off the failed attempt.

    Usage:
        AsyncRetrying(
            retry=retry_if_exception_type(AttemptError),
            wait=wait_for_signals(config),
        )
    """

    def __init__(self, config: PacingConfig, rng: random.Random | None = None) -> None:
        self.config = config
        self.rng = rng or random.Random()

    def __call__(self, retry_state: RetryCallState) -> float:
        snapshot = SignalSnapshot()
        if retry_state.outcome is not None and retry_state.outcome.failed:
            error = retry_state.outcome.exception()
            if isinstance(error, AttemptError):
                snapshot = error.snapshot

        wait_ms = compute_wait(snapshot, retry_state.attempt_number, self.config, self.rng)
        return wait_ms / 1000
