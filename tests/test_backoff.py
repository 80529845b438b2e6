"""
Tests for signal-driven backoff sizing.
"""

import random

import pytest
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from dirsweep.core.config.models import MsRange, PacingConfig
from dirsweep.core.errors import TargetBlocked, TargetFailed
from dirsweep.core.pacing.retries import compute_wait, describe_wait, wait_for_signals
from dirsweep.core.signals.snapshot import SignalSnapshot

from .fakes import RecordingSleep


def blocked_snapshot(retry_after_ms=None, lockout=False) -> SignalSnapshot:
    snapshot = SignalSnapshot()
    if lockout:
        snapshot.mark_hard_lockout("content 'error 1015' (lockout)")
    else:
        snapshot.mark_blocked("HTTP 429")
    if retry_after_ms is not None:
        snapshot.record_retry_after(retry_after_ms)
    return snapshot


class TestComputeWait:
    """Tests for compute_wait."""

    @pytest.mark.parametrize("attempt", [1, 2, 3, 4])
    def test_retry_after_is_used_verbatim(self, pacing, attempt):
        snapshot = blocked_snapshot(retry_after_ms=31_200, lockout=True)

        assert compute_wait(snapshot, attempt, pacing) == 31_200

    def test_hard_lockout_uses_long_cooldown(self, pacing):
        rng = random.Random(5)
        snapshot = blocked_snapshot(lockout=True)

        for attempt in (1, 3):
            wait = compute_wait(snapshot, attempt, pacing, rng)
            assert 600_000 <= wait <= 960_000

    def test_exponential_without_jitter(self):
        config = PacingConfig(base_backoff_ms=60_000, backoff_jitter=MsRange.of(0, 0))
        snapshot = blocked_snapshot()

        waits = [compute_wait(snapshot, n, config) for n in (1, 2, 3, 4)]

        assert waits == [60_000, 120_000, 240_000, 480_000]

    def test_exponential_applies_to_clean_failures(self, pacing):
        wait = compute_wait(SignalSnapshot(), 1, pacing, random.Random(1))

        assert 70_000 <= wait <= 90_000

    def test_backoff_grows_with_attempts_despite_jitter(self, pacing):
        rng = random.Random(11)
        snapshot = blocked_snapshot()

        for attempt in (1, 2, 3):
            current = [compute_wait(snapshot, attempt, pacing, rng) for _ in range(50)]
            following = [compute_wait(snapshot, attempt + 1, pacing, rng) for _ in range(50)]
            assert min(following) > max(current)

    def test_describe_wait(self):
        assert describe_wait(blocked_snapshot(retry_after_ms=5_000)) == "honoring Retry-After"
        assert describe_wait(blocked_snapshot(lockout=True)) == "hard lockout cooldown"
        assert describe_wait(SignalSnapshot()) == "exponential backoff"


class TestWaitForSignals:
    """Tests for the tenacity wait strategy."""

    @pytest.mark.asyncio
    async def test_waits_come_from_the_failed_attempt_snapshot(self):
        config = PacingConfig(base_backoff_ms=1_000, backoff_jitter=MsRange.of(0, 0))
        sleep = RecordingSleep()
        errors = [
            TargetBlocked("429", "X", 1, blocked_snapshot(retry_after_ms=30_000)),
            TargetFailed("timeout", "X", 2, SignalSnapshot()),
        ]
        calls = 0

        retrying = AsyncRetrying(
            stop=stop_after_attempt(3),
            wait=wait_for_signals(config),
            retry=retry_if_exception_type((TargetBlocked, TargetFailed)),
            sleep=sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                calls += 1
                if calls <= len(errors):
                    raise errors[calls - 1]

        assert calls == 3
        # Retry-After wins on attempt 1; attempt 2 falls back to 1s * 2
        assert sleep.calls == [30.0, 2.0]
