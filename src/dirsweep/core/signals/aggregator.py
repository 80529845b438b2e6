"""
Block signal aggregation for a live browser page.

A SignalMonitor is attached to the page for the lifetime of one attempt.
It listens to every transport response for throttle statuses and
Retry-After headers, and probes the rendered content for block markers,
both on demand and from a background task on a fixed interval.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, TypeVar

from dirsweep.core.config.models import MsRange, ServiceConfig
from dirsweep.core.errors import BlockDetected

from .snapshot import SignalSnapshot, parse_retry_after

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SignalMonitor:
    """Live block detector bound to one page and one attempt.

    Usage:
        async with aggregator.attach(page) as monitor:
            await page.goto(url)
            await monitor.check_now()
            rows = await monitor.race(page.wait_for_selector(sel), polls=35, interval=0.9)
    """

    def __init__(
        self,
        page: Any,
        service: ServiceConfig,
        retry_after_jitter: MsRange,
        rng: random.Random | None = None,
    ) -> None:
        self.snapshot = SignalSnapshot()
        self._page = page
        self._service = service
        self._retry_after_jitter = retry_after_jitter
        self._rng = rng or random.Random()
        self._block_markers = [m.lower() for m in service.block_markers]
        self._lockout_markers = [m.lower() for m in service.hard_lockout_markers]
        self._probe_task: asyncio.Task[None] | None = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def start(self) -> "SignalMonitor":
        """Subscribe to responses and start the periodic content probe."""
        self._page.on("response", self._on_response)
        self._probe_task = asyncio.get_running_loop().create_task(self._probe_loop())
        return self

    # -------------------------------------------------------------------------
    # Transport signals
    # -------------------------------------------------------------------------

    def _on_response(self, response: Any) -> None:
        status = response.status
        if status not in self._service.block_statuses:
            return

        self.snapshot.mark_blocked(f"HTTP {status}")

        if status == 429:
            headers = response.headers or {}
            seconds = parse_retry_after(headers.get("retry-after"))
            if seconds is not None:
                wait_ms = int(seconds * 1000) + self._retry_after_jitter.draw(self._rng)
                self.snapshot.record_retry_after(wait_ms)

        logger.warning(f"Block status {status} from {response.url} ({self.snapshot.describe()})")

    # -------------------------------------------------------------------------
    # Content signals
    # -------------------------------------------------------------------------

    async def check_now(self) -> SignalSnapshot:
        """Inspect the rendered page for block markers.

        Returns the (possibly updated) snapshot.
        """
        try:
            html = (await self._page.content()).lower()
        except Exception as e:
            # Content is unavailable mid-navigation; that is not evidence either way
            logger.debug(f"Block probe skipped: {e}")
            return self.snapshot

        for marker in self._block_markers:
            if marker in html:
                if any(lockout in html for lockout in self._lockout_markers):
                    if not self.snapshot.hard_lockout:
                        logger.warning(f"Hard lockout page detected ('{marker}')")
                    self.snapshot.mark_hard_lockout(f"content '{marker}' (lockout)")
                else:
                    self.snapshot.mark_blocked(f"content '{marker}'")
                break

        return self.snapshot

    def raise_if_blocked(self, where: str) -> None:
        if self.snapshot.blocked:
            raise BlockDetected(f"Blocked {where}: {self.snapshot.describe()}")

    async def _probe_loop(self) -> None:
        interval = self._service.probe_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            await self.check_now()

    async def _watch(self, polls: int, interval: float) -> None:
        for _ in range(polls):
            await self.check_now()
            self.raise_if_blocked("while waiting")
            await asyncio.sleep(interval)

    async def race(self, awaitable: Awaitable[T], polls: int, interval: float) -> T:
        """Await ``awaitable`` unless block evidence shows up first.

        The block watcher probes ``polls`` times, ``interval`` seconds apart.
        If it runs out of polls without a block, the awaitable keeps going
        until its own timeout.

        Raises:
            BlockDetected: If the snapshot turns blocked before completion
        """
        waiter = asyncio.ensure_future(awaitable)
        watcher = asyncio.ensure_future(self._watch(polls, interval))
        try:
            done, _ = await asyncio.wait({waiter, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if watcher in done and watcher.exception() is not None:
                raise watcher.exception()  # type: ignore[misc]
            return await waiter
        finally:
            for task in (waiter, watcher):
                if not task.done():
                    task.cancel()

    # -------------------------------------------------------------------------
    # Lifetime
    # -------------------------------------------------------------------------

    async def release(self) -> None:
        """Stop all observation. Safe to call more than once."""
        if self._released:
            return
        self._released = True

        self._page.remove_listener("response", self._on_response)

        if self._probe_task is not None:
            self._probe_task.cancel()
            await asyncio.wait([self._probe_task])
            self._probe_task = None

    async def __aenter__(self) -> "SignalMonitor":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.release()


class SignalAggregator:
    """Factory for per-attempt SignalMonitors sharing one configuration."""

    def __init__(
        self,
        service: ServiceConfig,
        retry_after_jitter: MsRange,
        rng: random.Random | None = None,
    ) -> None:
        self.service = service
        self.retry_after_jitter = retry_after_jitter
        self._rng = rng or random.Random()

    def attach(self, page: Any) -> SignalMonitor:
        """Start observing ``page``; the caller must release the monitor."""
        return SignalMonitor(page, self.service, self.retry_after_jitter, self._rng).start()
