"""
Bounded UI waits.

Every wait in the join flow goes through this module with an explicit timeout
instead of relying on Playwright's default. Optional waits return a
WaitResult; mandatory waits raise Playwright's TimeoutError.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)

# Playwright element states
ATTACHED = "attached"
HIDDEN = "hidden"


def to_playwright_timeout(timeout: Optional[float]) -> float:
    """Seconds to Playwright milliseconds. None becomes 0 (no timeout)."""
    if timeout is None:
        return 0
    return timeout * 1000


@dataclass
class WaitResult:
    """Outcome of a bounded wait."""

    found: bool
    selector: str
    elapsed: float = 0.0
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.found


@dataclass(frozen=True)
class Detector:
    """One way of noticing that the UI reached some state."""

    name: str
    selector: str
    timeout: Optional[float]
    state: str = ATTACHED


async def wait_for_element(
    page,
    selector: str,
    timeout: Optional[float],
    state: str = ATTACHED,
) -> WaitResult:
    """
    Wait for a selector to reach a state, without raising on timeout.

    Args:
        page: Playwright page
        selector: CSS selector (comma-separated alternatives allowed)
        timeout: Seconds to wait; None waits forever
        state: attached, visible, hidden or detached

    Returns:
        WaitResult with found=False on timeout.
    """
    start = time.monotonic()
    try:
        await page.wait_for_selector(
            selector, state=state, timeout=to_playwright_timeout(timeout)
        )
    except PlaywrightTimeoutError as e:
        elapsed = time.monotonic() - start
        logger.debug(f"Timed out after {elapsed:.1f}s waiting for {selector} ({state})")
        return WaitResult(found=False, selector=selector, elapsed=elapsed, error=str(e))
    return WaitResult(found=True, selector=selector, elapsed=time.monotonic() - start)


async def require_element(
    page,
    selector: str,
    timeout: Optional[float],
    state: str = ATTACHED,
) -> None:
    """Wait for a selector and raise PlaywrightTimeoutError if it never shows up."""
    await page.wait_for_selector(
        selector, state=state, timeout=to_playwright_timeout(timeout)
    )


async def first_detected(page, detectors: list[Detector]) -> Optional[Detector]:
    """
    Try detectors in priority order, each with its own timeout.

    Returns:
        The first detector that fired, or None if all timed out.
    """
    for detector in detectors:
        result = await wait_for_element(
            page, detector.selector, detector.timeout, detector.state
        )
        if result:
            return detector
        logger.debug(f"Detector '{detector.name}' did not fire")
    return None


async def pause(seconds: float) -> None:
    """Fixed timer used for UI settle delays."""
    if seconds > 0:
        await asyncio.sleep(seconds)
