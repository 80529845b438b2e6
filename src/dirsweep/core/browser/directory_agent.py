"""
Directory search agent.

Drives the "find by location" form of the directory service:

1. Load the landing page (cookies kept) and probe it for a block page
2. Clear the location input and type the target like a person would
3. Pick the first autocomplete suggestion
4. Pass the submit gate, then click Search
5. Race the result list against block detection
6. Scroll to trigger lazy loading until the list stops growing
7. Read every result row's data-* attributes
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable

from lxml import etree
from lxml import html as lxml_html
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from dirsweep.core.config.models import MsRange, ServiceConfig
from dirsweep.core.normalize.records import Record

from .base import AttemptContext, CollectionAgent

logger = logging.getLogger(__name__)

SCROLL_SCRIPT = "window.scrollBy(0, Math.round(window.innerHeight * 0.85))"

MICRO_PAUSE_PROBABILITY = 0.18


def parse_results(html: str, selector: str) -> list[Record]:
    """Extract one Record per element matching ``selector``.

    Fields come from the element's ``data-*`` attributes.
    """
    if not html or not html.strip():
        return []

    try:
        tree = lxml_html.fromstring(html)
    except (etree.ParserError, ValueError) as e:
        logger.warning(f"Could not parse results page: {e}")
        return []

    records: list[Record] = []
    for element in tree.cssselect(selector):
        data = {
            key[len("data-"):].lower(): value
            for key, value in element.attrib.items()
            if key.startswith("data-")
        }
        records.append(Record.from_attributes(data))
    return records


class DirectoryAgent(CollectionAgent):
    """Collection agent for the directory's location search form."""

    def __init__(
        self,
        service: ServiceConfig,
        *,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.service = service
        self._rng = rng or random.Random()
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "directory"

    async def _pause(self, min_ms: int, max_ms: int) -> None:
        await self._sleep(self._rng.randint(min_ms, max_ms) / 1000)

    def _delay(self, min_ms: int, max_ms: int) -> int:
        return self._rng.randint(min_ms, max_ms)

    async def run(self, ctx: AttemptContext, page: Any) -> list[Record]:
        svc = self.service

        await page.goto(
            svc.search_url,
            wait_until="domcontentloaded",
            timeout=svc.navigation_timeout_ms,
        )
        await ctx.monitor.check_now()
        ctx.monitor.raise_if_blocked("on landing")

        await page.wait_for_selector(svc.input_selector, state="visible")
        await self._type_target(page, ctx.target)
        await self._pick_suggestion(page)

        await ctx.before_submit()

        await page.wait_for_selector(svc.submit_selector, state="visible")
        await page.click(svc.submit_selector, delay=self._delay(20, 60))

        await ctx.monitor.race(
            page.wait_for_selector(svc.result_selector, timeout=svc.results_timeout_ms),
            polls=svc.result_polls,
            interval=svc.result_poll_interval_ms / 1000,
        )

        await self._load_more(page)

        records = parse_results(await page.content(), svc.result_selector)
        logger.debug(f"Parsed {len(records)} result rows for {ctx.target}")
        return records

    async def _type_target(self, page: Any, target: str) -> None:
        """Clear the input and type the target one key at a time."""
        selector = self.service.input_selector

        await page.click(selector, click_count=3, delay=self._delay(30, 70))
        await self._pause(200, 450)
        await page.keyboard.press("Backspace")
        await self._pause(150, 350)

        for ch in target:
            await page.keyboard.type(ch, delay=self._delay(55, 110))
            if self._rng.random() < MICRO_PAUSE_PROBABILITY:
                await self._pause(60, 180)

        await self._pause(450, 800)

    async def _pick_suggestion(self, page: Any) -> None:
        """Choose the first autocomplete suggestion, if one shows up."""
        selectors = self.service.suggestion_selectors
        if not selectors:
            return

        try:
            await page.wait_for_selector(
                ", ".join(selectors),
                state="attached",
                timeout=self.service.suggestion_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            logger.debug(f"No autocomplete list appeared ({e}); trying direct click")
            for selector in selectors:
                option = await page.query_selector(selector)
                if option is not None:
                    await option.click(delay=self._delay(15, 55))
                    break
        else:
            await page.keyboard.press("ArrowDown", delay=self._delay(40, 100))
            await page.keyboard.press("Enter", delay=self._delay(40, 100))

        await self._pause(500, 900)

    async def _load_more(self, page: Any) -> None:
        """Scroll until the result count stops growing or rounds run out."""
        selector = self.service.result_selector
        pause: MsRange = self.service.scroll_pause

        for _ in range(self.service.scroll_rounds):
            before = await page.locator(selector).count()
            await page.evaluate(SCROLL_SCRIPT)
            await self._sleep(pause.draw(self._rng) / 1000)
            after = await page.locator(selector).count()
            if after <= before:
                break
