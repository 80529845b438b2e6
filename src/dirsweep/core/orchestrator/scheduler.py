"""
Adaptive batch scheduler.

Walks the target list in batches whose size comes from the adaptive policy
at the moment each batch is formed. A batch in which any target was
exhausted while blocked tightens the policy for the rest of the run; the
run itself never stops early because of blocks.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Sequence

from dirsweep.core.config.models import MsRange
from dirsweep.core.logging import get_contextual_logger, get_logger
from dirsweep.core.pacing.policy import AdaptivePolicy

from .runner import TargetOutcome, TargetResult, TargetRunner

logger = get_logger("scheduler")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BatchOutcome:
    """Results of one batch and the policy in force after it.

    ``saw_block`` is true when a target of the batch ended exhausted while
    blocked, which is what tightens the policy.
    """

    index: int
    results: list[TargetResult]
    saw_block: bool
    policy: AdaptivePolicy


@dataclass
class RunStats:
    """Statistics for a sweep run."""

    total_targets: int = 0
    batches: int = 0
    tightenings: int = 0
    results: list[TargetResult] = field(default_factory=list)

    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.outcome is TargetOutcome.SUCCESS)

    @property
    def exhausted_blocked(self) -> int:
        return sum(1 for r in self.results if r.outcome is TargetOutcome.EXHAUSTED_BLOCKED)

    @property
    def exhausted_error(self) -> int:
        return sum(1 for r in self.results if r.outcome is TargetOutcome.EXHAUSTED_ERROR)

    @property
    def records_total(self) -> int:
        return sum(r.records for r in self.results)

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_targets": self.total_targets,
            "processed": len(self.results),
            "succeeded": self.succeeded,
            "exhausted_blocked": self.exhausted_blocked,
            "exhausted_error": self.exhausted_error,
            "records_total": self.records_total,
            "batches": self.batches,
            "tightenings": self.tightenings,
            "duration_seconds": self.duration_seconds,
        }


class BatchScheduler:
    """Sequential, adaptively paced sweep over an ordered target list."""

    def __init__(
        self,
        runner: TargetRunner,
        policy: AdaptivePolicy,
        between_targets: MsRange,
        *,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_batch: Callable[[BatchOutcome], None] | None = None,
    ) -> None:
        self.runner = runner
        self.policy = policy
        self.between_targets = between_targets
        self.on_batch = on_batch
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def _pause(self, window: MsRange, message: str, warn: bool = False) -> None:
        delay_ms = window.draw(self._rng)
        text = f"{message} {delay_ms / 1000:.0f}s"
        if warn:
            logger.warning(text)
        else:
            logger.info(text)
        await self._sleep(delay_ms / 1000)

    async def run(self, targets: Sequence[str]) -> RunStats:
        """Process every target once, in order."""
        stats = RunStats(total_targets=len(targets))
        cursor = 0

        logger.info(f"Starting sweep of {len(targets)} target(s); {self.policy.describe()}")

        while cursor < len(targets):
            # Re-slice from the cursor: the batch size may have shrunk
            batch = list(targets[cursor:cursor + self.policy.batch_size])
            cursor += len(batch)
            stats.batches += 1

            results = await self._run_batch(batch, stats.batches, cursor - len(batch), len(targets))
            stats.results.extend(results)
            remaining = cursor < len(targets)

            if remaining:
                await self._pause(
                    self.policy.inter_batch_delay,
                    f"Batch {stats.batches} done. Waiting before next batch:",
                )

            # Only targets that gave up while blocked tighten the policy
            saw_block = any(r.outcome is TargetOutcome.EXHAUSTED_BLOCKED for r in results)
            if saw_block:
                self.policy.tighten()
                stats.tightenings += 1
                logger.warning(
                    f"Batch {stats.batches} hit rate limiting; tightened policy to {self.policy.describe()}"
                )
                if remaining:
                    await self._pause(
                        self.policy.post_block_cooldown,
                        "Extra global cooldown:",
                        warn=True,
                    )

            if self.on_batch is not None:
                self.on_batch(BatchOutcome(
                    index=stats.batches,
                    results=results,
                    saw_block=saw_block,
                    policy=self.policy.copy(),
                ))

        stats.finished_at = _utcnow()
        logger.info(
            f"All targets processed: {stats.succeeded} ok, "
            f"{stats.exhausted_blocked} blocked, {stats.exhausted_error} failed, "
            f"{stats.records_total} records"
        )
        return stats

    async def _run_batch(
        self,
        batch: list[str],
        index: int,
        offset: int,
        total: int,
    ) -> list[TargetResult]:
        log = get_contextual_logger("scheduler", batch=index)
        log.info(f"Batch {index} :: {len(batch)} target(s)")

        results: list[TargetResult] = []
        for position, target in enumerate(batch):
            log.info(
                f"{target} ({position + 1}/{len(batch)} in batch; "
                f"overall {offset + position + 1}/{total})"
            )
            results.append(await self.runner.run(target))

            if position < len(batch) - 1:
                await self._pause(self.between_targets, "Cooling before next target:")

        return results
