"""
Browser Session Manager.

Owns the single Chromium process shared by every synthetic participant.
Launch flags are fixed (see config.DEFAULT_LAUNCH_FLAGS) so runs are
deterministic and safe in headless containers:
- no sandbox, no GPU
- simulated camera/microphone instead of real devices
- muted audio output

A launch failure is fatal for the whole run and is never retried.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import async_playwright

from tool_modules.aa_bbb_stress.src.config import BrowserConfig, get_config
from tool_modules.aa_bbb_stress.src.errors import LaunchFailure
from tool_modules.aa_bbb_stress.src.waits import to_playwright_timeout

logger = logging.getLogger(__name__)


class BrowserSession:
    """One shared browser process and the pages opened on it."""

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or get_config().browser
        self.browser = None
        self.pages: list = []
        self._playwright = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self.browser is not None and not self._closed

    async def launch(self) -> "BrowserSession":
        """Start Chromium with the fixed launch flags.

        Raises:
            LaunchFailure: If Playwright or the browser cannot start.
        """
        logger.info(
            f"[LAUNCH] Starting browser (headless={self.config.headless}, "
            f"executable={self.config.executable_path or 'bundled'})"
        )
        try:
            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                executable_path=self.config.executable_path,
                args=self.config.launch_args,
            )
        except Exception as e:
            logger.error(f"[LAUNCH] Failed to start browser: {e}")
            await self.close()
            raise LaunchFailure(f"Failed to start browser: {e}") from e

        self._closed = False
        logger.info(f"[LAUNCH] Browser started (version {self.browser.version})")
        return self

    async def new_page(self, url: str, timeout: Optional[float] = None):
        """Open a new page on the shared browser and navigate to url.

        Args:
            url: Page to load
            timeout: Navigation timeout in seconds; None waits forever

        Returns:
            The Playwright page.
        """
        if not self.is_open:
            raise RuntimeError("Browser session is not open")

        page = await self.browser.new_page()
        self.pages.append(page)
        await page.goto(url, timeout=to_playwright_timeout(timeout))
        logger.debug(f"Opened page {len(self.pages)}: {page.url}")
        return page

    async def close(self) -> None:
        """Close the browser and stop Playwright.

        Safe to call more than once and after a failed launch.
        """
        if self.browser is not None:
            logger.info(f"[RUN] Closing browser ({len(self.pages)} pages open)")
            try:
                await asyncio.wait_for(
                    self.browser.close(), timeout=self.config.close_timeout
                )
            except asyncio.TimeoutError:
                logger.warning("Timeout closing browser")
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self.browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

        self.pages.clear()
        self._closed = True


async def launch_browser(config: Optional[BrowserConfig] = None) -> BrowserSession:
    """Create and launch a browser session."""
    session = BrowserSession(config)
    await session.launch()
    return session
