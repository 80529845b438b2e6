"""
Playwright browser session.

One persistent Chromium context and one page are reused for the whole run
so cookies and session state carry over between targets (and between runs,
through the profile directory).
"""

from __future__ import annotations

import logging
import os
import random
from typing import TYPE_CHECKING, Any

from dirsweep.core.config.models import BrowserConfig
from dirsweep.core.errors import SessionError

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page, Playwright, Route

logger = logging.getLogger(__name__)


CHROME_MAJOR_VERSIONS = (120, 125)


STEALTH_SCRIPT = """
// Override navigator.webdriver - primary detection method
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});

// Override navigator.plugins to look like a real browser
Object.defineProperty(navigator, 'plugins', {
    get: () => [
        { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer' },
        { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai' },
        { name: 'Native Client', filename: 'internal-nacl-plugin' }
    ]
});

Object.defineProperty(navigator, 'languages', {
    get: () => ['en-AU', 'en']
});

window.chrome = {
    runtime: {},
    loadTimes: function() {},
    csi: function() {},
    app: {}
};
"""


def make_user_agent(rng: random.Random | None = None) -> str:
    """Desktop Chrome user agent with a randomized major version."""
    major = (rng or random).randint(*CHROME_MAJOR_VERSIONS)
    return (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        f"(KHTML, like Gecko) Chrome/{major}.0.0.0 Safari/537.36"
    )


def resolve_proxy(config: BrowserConfig) -> str | None:
    """Configured proxy, else HTTPS_PROXY, else HTTP_PROXY."""
    return config.proxy or os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY") or None


class BrowserSession:
    """Owns the Playwright driver, the persistent context and the working page.

    Usage:
        async with BrowserSession(config) as session:
            page = session.page
    """

    def __init__(self, config: BrowserConfig, rng: random.Random | None = None) -> None:
        self.config = config
        self._rng = rng or random.Random()
        self.user_agent = config.user_agent or make_user_agent(self._rng)
        self.proxy = resolve_proxy(config)

        self._playwright: Playwright | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def stealth(self) -> bool:
        return self.config.stealth

    @property
    def page(self) -> Page:
        if self._page is None or self._page.is_closed():
            raise SessionError("Browser session is not open")
        return self._page

    def _launch_options(self) -> dict[str, Any]:
        jitter = self.config.viewport_jitter_px
        args = ["--no-sandbox", "--disable-setuid-sandbox"]
        if self.stealth:
            args.append("--disable-blink-features=AutomationControlled")

        options: dict[str, Any] = {
            "headless": self.config.headless,
            "slow_mo": self.config.slow_mo_ms,
            "args": args,
            "viewport": {
                "width": self.config.viewport_width + self._rng.randint(-jitter, jitter),
                "height": self.config.viewport_height + self._rng.randint(-jitter, jitter),
            },
            "user_agent": self.user_agent,
        }
        if self.proxy:
            options["proxy"] = {"server": self.proxy}
        return options

    async def _block_heavy_resources(self, route: Route) -> None:
        if route.request.resource_type in self.config.block_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def open(self) -> Page:
        """Launch the browser and return the working page.

        Raises:
            SessionError: If Playwright or the browser is unavailable
        """
        if self._page is not None and not self._page.is_closed():
            return self._page

        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise SessionError(
                "Playwright is not installed. Run: playwright install chromium",
                cause=e,
            ) from e

        self.config.user_data_dir.mkdir(parents=True, exist_ok=True)

        try:
            self._playwright = await async_playwright().start()
            self._context = await self._playwright.chromium.launch_persistent_context(
                str(self.config.user_data_dir),
                **self._launch_options(),
            )
            if self.stealth:
                await self._context.add_init_script(STEALTH_SCRIPT)
            if self.config.block_resource_types:
                await self._context.route("**/*", self._block_heavy_resources)

            pages = self._context.pages
            self._page = pages[0] if pages else await self._context.new_page()
            self._page.set_default_timeout(self.config.default_timeout_ms)
        except Exception as e:
            await self.close()
            raise SessionError(
                "Failed to launch chromium. Run: playwright install chromium",
                cause=e,
            ) from e

        logger.info(
            f"Launched chromium (headless={self.config.headless}, "
            f"stealth={'on' if self.stealth else 'off'}, proxy={'on' if self.proxy else 'off'})"
        )
        return self._page

    async def close(self) -> None:
        """Close the context and stop Playwright."""
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.warning(f"Failed to close browser context: {e}")
            self._context = None
            self._page = None

        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
