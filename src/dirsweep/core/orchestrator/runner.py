"""
Per-target retry loop.

Drives one target through up to ``max_attempts`` search attempts. Each
attempt runs with a fresh signal monitor attached; failures are classified
as blocked or transient from the monitor's snapshot, and tenacity sizes the
wait before the next attempt from that same snapshot.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from dirsweep.core.browser.base import AttemptContext, CollectionAgent
from dirsweep.core.config.models import PacingConfig
from dirsweep.core.errors import AttemptError, SessionError, TargetBlocked, TargetFailed
from dirsweep.core.logging import get_contextual_logger
from dirsweep.core.normalize.records import Record, dedupe_records
from dirsweep.core.pacing.retries import describe_wait, wait_for_signals
from dirsweep.core.pacing.throttling import SubmissionGate
from dirsweep.core.signals.aggregator import SignalAggregator

ResultSink = Callable[[str, Sequence[Record]], "Path | None"]


class TargetOutcome(str, Enum):
    """Terminal state of a target."""

    SUCCESS = "success"
    EXHAUSTED_BLOCKED = "exhausted_blocked"
    EXHAUSTED_ERROR = "exhausted_error"


@dataclass
class TargetResult:
    """What happened to one target."""

    target: str
    outcome: TargetOutcome = TargetOutcome.SUCCESS
    records: int = 0
    attempts: int = 0
    saw_block: bool = False
    waits_ms: list[int] = field(default_factory=list)
    error: str | None = None
    output_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is TargetOutcome.SUCCESS

    @property
    def exhausted(self) -> bool:
        return self.outcome is not TargetOutcome.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "outcome": self.outcome.value,
            "records": self.records,
            "attempts": self.attempts,
            "saw_block": self.saw_block,
            "waits_ms": list(self.waits_ms),
            "error": self.error,
            "output_path": str(self.output_path) if self.output_path else None,
        }


class TargetRunner:
    """Runs the attempt/backoff loop for one target at a time.

    Never raises for blocked or failed targets; once the attempt ceiling is
    reached the target is reported as exhausted and control returns to the
    caller. Only SessionError escapes.
    """

    def __init__(
        self,
        agent: CollectionAgent,
        page: Any,
        gate: SubmissionGate,
        aggregator: SignalAggregator,
        pacing: PacingConfig,
        *,
        sink: ResultSink | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.agent = agent
        self.page = page
        self.gate = gate
        self.aggregator = aggregator
        self.pacing = pacing
        self.sink = sink
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def run(self, target: str) -> TargetResult:
        """Drive ``target`` to a terminal outcome."""
        result = TargetResult(target=target)
        log = get_contextual_logger("runner", target=target)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.pacing.max_attempts),
            wait=wait_for_signals(self.pacing, self._rng),
            retry=retry_if_exception_type(AttemptError),
            before_sleep=partial(self._before_backoff, result),
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    records = await self._attempt(target, attempt.retry_state.attempt_number, result)
        except AttemptError as e:
            result.outcome = (
                TargetOutcome.EXHAUSTED_BLOCKED if e.blocked else TargetOutcome.EXHAUSTED_ERROR
            )
            result.error = str(e)
            log.error(
                f"Giving up on {target} after {result.attempts} attempt(s)"
                f"{' (rate limited)' if e.blocked else ''}"
            )
            return result

        unique = dedupe_records(records)
        result.records = len(unique)
        self._persist(result, unique, log)
        log.info(f"Extracted {result.records} records for {target} in {result.attempts} attempt(s)")
        return result

    async def _attempt(self, target: str, number: int, result: TargetResult) -> list[Record]:
        log = get_contextual_logger("runner", target=target, attempt=number)
        result.attempts = number
        log.info(f"Searching {target} (attempt {number}/{self.pacing.max_attempts})")

        monitor = self.aggregator.attach(self.page)
        try:
            ctx = AttemptContext(
                target=target,
                attempt=number,
                monitor=monitor,
                before_submit=self.gate.await_turn,
            )
            try:
                records = await self.agent.run(ctx, self.page)
            except SessionError:
                raise
            except Exception as e:
                snapshot = monitor.snapshot
                message = f"{type(e).__name__}: {e}"
                if snapshot.blocked:
                    result.saw_block = True
                    log.error(f"Error on {target}: {message} (rate limited: {snapshot.describe()})")
                    raise TargetBlocked(message, target, number, snapshot, cause=e) from e
                log.error(f"Error on {target}: {message}")
                raise TargetFailed(message, target, number, snapshot, cause=e) from e

            if monitor.snapshot.blocked:
                result.saw_block = True
                log.warning(f"Results returned despite block signal ({monitor.snapshot.describe()})")
            return records
        finally:
            await monitor.release()
            await self._sleep(self.pacing.courtesy_pause.draw(self._rng) / 1000)

    def _before_backoff(self, result: TargetResult, retry_state: RetryCallState) -> None:
        wait_seconds = retry_state.next_action.sleep if retry_state.next_action else 0.0
        result.waits_ms.append(round(wait_seconds * 1000))

        reason = "exponential backoff"
        if retry_state.outcome is not None:
            error = retry_state.outcome.exception()
            if isinstance(error, AttemptError):
                reason = describe_wait(error.snapshot)

        log = get_contextual_logger("runner", target=result.target, attempt=retry_state.attempt_number)
        log.warning(
            f"Backoff ({reason}): waiting {wait_seconds:.0f}s "
            f"before attempt {retry_state.attempt_number + 1}/{self.pacing.max_attempts}"
        )

    def _persist(self, result: TargetResult, records: list[Record], log: Any) -> None:
        if self.sink is None:
            return
        try:
            result.output_path = self.sink(result.target, records)
        except OSError as e:
            result.error = f"persist failed: {e}"
            log.error(f"Could not write results for {result.target}: {e}")
