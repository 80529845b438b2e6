"""
Top-level sweep wiring.

Builds the browser session and every pacing component from an AppConfig,
runs the batch scheduler over the targets and always closes the session.
"""

from __future__ import annotations

import random
from typing import Callable, Sequence

from dirsweep.core.browser.base import CollectionAgent
from dirsweep.core.browser.directory_agent import DirectoryAgent
from dirsweep.core.browser.session import BrowserSession
from dirsweep.core.config.loader import normalize_targets
from dirsweep.core.config.models import AppConfig
from dirsweep.core.logging import get_logger
from dirsweep.core.pacing.policy import AdaptivePolicy
from dirsweep.core.pacing.throttling import SubmissionGate
from dirsweep.core.signals.aggregator import SignalAggregator
from dirsweep.persistence.csv_store import CsvResultWriter

from .runner import TargetRunner
from .scheduler import BatchOutcome, BatchScheduler, RunStats

logger = get_logger("sweep")


async def run_sweep(
    config: AppConfig,
    targets: Sequence[str] | None = None,
    *,
    agent: CollectionAgent | None = None,
    on_batch: Callable[[BatchOutcome], None] | None = None,
    rng: random.Random | None = None,
) -> RunStats:
    """Run a complete sweep.

    Args:
        config: Application configuration
        targets: Ordered targets (defaults to ``config.targets``)
        agent: Collection agent (defaults to DirectoryAgent)
        on_batch: Called after every batch
        rng: Random source shared by every jittered wait

    Returns:
        RunStats with per-target results

    Raises:
        SessionError: If the browser session cannot be created
    """
    names = normalize_targets(list(targets if targets is not None else config.targets))
    if not names:
        logger.warning("No targets to process")
        return RunStats()

    rng = rng or random.Random()
    pacing = config.pacing
    session = BrowserSession(config.browser, rng=rng)

    logger.info(
        f"Starting. Total targets: {len(names)}. Initial batch size: {pacing.batch_size}. "
        f"Stealth: {'on' if session.stealth else 'off'}. Proxy: {'on' if session.proxy else 'off'}"
    )

    async with session:
        runner = TargetRunner(
            agent or DirectoryAgent(config.service, rng=rng),
            session.page,
            SubmissionGate(pacing.gate_spacing, pacing.gate_jitter, rng=rng),
            SignalAggregator(config.service, pacing.retry_after_jitter, rng=rng),
            pacing,
            sink=CsvResultWriter(config.output.directory).write,
            rng=rng,
        )
        scheduler = BatchScheduler(
            runner,
            AdaptivePolicy.from_config(pacing),
            pacing.between_targets,
            rng=rng,
            on_batch=on_batch,
        )
        return await scheduler.run(names)
