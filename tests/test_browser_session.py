"""Tests for tool_modules/aa_bbb_stress/src/browser_session.py - shared Chromium."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tool_modules.aa_bbb_stress.src.browser_session import BrowserSession, launch_browser
from tool_modules.aa_bbb_stress.src.config import (
    DEFAULT_LAUNCH_FLAGS,
    BrowserConfig,
    build_config,
)
from tool_modules.aa_bbb_stress.src.errors import LaunchFailure

PATCH_TARGET = "tool_modules.aa_bbb_stress.src.browser_session.async_playwright"


@pytest.fixture
def mock_playwright():
    """A Playwright driver whose chromium.launch returns a mock browser."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.url = "https://bbb.example.com/join"

    browser = MagicMock()
    browser.version = "120.0.6099.28"
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()

    driver = MagicMock()
    driver.chromium.launch = AsyncMock(return_value=browser)
    driver.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=driver)

    with patch(PATCH_TARGET, return_value=starter):
        yield driver, browser, page


class TestLaunch:
    @pytest.mark.asyncio
    async def test_uses_fixed_flags(self, mock_playwright):
        driver, _, _ = mock_playwright
        session = BrowserSession(BrowserConfig())

        await session.launch()

        kwargs = driver.chromium.launch.call_args.kwargs
        assert kwargs["args"] == list(DEFAULT_LAUNCH_FLAGS)
        assert kwargs["headless"] is True
        assert kwargs["executable_path"] is None
        assert session.is_open

    def test_flags_simulate_media_devices(self):
        assert "--use-fake-device-for-media-stream" in DEFAULT_LAUNCH_FLAGS
        assert "--use-fake-ui-for-media-stream" in DEFAULT_LAUNCH_FLAGS
        assert "--mute-audio" in DEFAULT_LAUNCH_FLAGS
        assert "--no-sandbox" in DEFAULT_LAUNCH_FLAGS

    @pytest.mark.asyncio
    async def test_config_json_cannot_replace_fixed_flags(self, mock_playwright):
        driver, _, _ = mock_playwright
        config = build_config(
            section={"browser": {"launch_flags": ["--enable-gpu"]}}, use_dotenv=False
        )

        await BrowserSession(config.browser).launch()

        args = driver.chromium.launch.call_args.kwargs["args"]
        assert "--no-sandbox" in args
        assert "--mute-audio" in args
        assert "--enable-gpu" not in args

    @pytest.mark.asyncio
    async def test_extra_flags_appended(self, mock_playwright):
        driver, _, _ = mock_playwright
        session = BrowserSession(BrowserConfig(extra_launch_flags=["--lang=en-US"]))

        await session.launch()

        args = driver.chromium.launch.call_args.kwargs["args"]
        assert args == list(DEFAULT_LAUNCH_FLAGS) + ["--lang=en-US"]

    @pytest.mark.asyncio
    async def test_custom_executable(self, mock_playwright):
        driver, _, _ = mock_playwright
        session = BrowserSession(
            BrowserConfig(executable_path="/usr/bin/chromium", headless=False)
        )

        await session.launch()

        kwargs = driver.chromium.launch.call_args.kwargs
        assert kwargs["executable_path"] == "/usr/bin/chromium"
        assert kwargs["headless"] is False

    @pytest.mark.asyncio
    async def test_failure_raises_launch_failure(self, mock_playwright):
        driver, _, _ = mock_playwright
        driver.chromium.launch = AsyncMock(side_effect=Exception("Executable doesn't exist"))
        session = BrowserSession(BrowserConfig())

        with pytest.raises(LaunchFailure, match="Executable doesn't exist"):
            await session.launch()

        driver.stop.assert_awaited_once()
        assert not session.is_open

    @pytest.mark.asyncio
    async def test_launch_browser_helper(self, mock_playwright):
        session = await launch_browser(BrowserConfig())

        assert session.is_open


class TestNewPage:
    @pytest.mark.asyncio
    async def test_before_launch(self):
        session = BrowserSession(BrowserConfig())

        with pytest.raises(RuntimeError):
            await session.new_page("https://bbb.example.com/join")

    @pytest.mark.asyncio
    async def test_navigates_with_millisecond_timeout(self, mock_playwright):
        _, _, page = mock_playwright
        session = BrowserSession(BrowserConfig())
        await session.launch()

        result = await session.new_page("https://bbb.example.com/join", timeout=30)

        assert result is page
        page.goto.assert_awaited_once_with("https://bbb.example.com/join", timeout=30000)
        assert session.pages == [page]

    @pytest.mark.asyncio
    async def test_unbounded_navigation(self, mock_playwright):
        _, _, page = mock_playwright
        session = BrowserSession(BrowserConfig())
        await session.launch()

        await session.new_page("https://bbb.example.com/join", timeout=None)

        page.goto.assert_awaited_once_with("https://bbb.example.com/join", timeout=0)


class TestClose:
    @pytest.mark.asyncio
    async def test_closes_browser_and_driver(self, mock_playwright):
        driver, browser, _ = mock_playwright
        session = BrowserSession(BrowserConfig())
        await session.launch()

        await session.close()

        browser.close.assert_awaited_once()
        driver.stop.assert_awaited_once()
        assert not session.is_open

    @pytest.mark.asyncio
    async def test_idempotent(self, mock_playwright):
        driver, browser, _ = mock_playwright
        session = BrowserSession(BrowserConfig())
        await session.launch()

        await session.close()
        await session.close()

        browser.close.assert_awaited_once()
        driver.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_launch(self):
        session = BrowserSession(BrowserConfig())

        await session.close()

        assert not session.is_open

    @pytest.mark.asyncio
    async def test_hanging_close_times_out(self, mock_playwright):
        driver, browser, _ = mock_playwright

        async def hang():
            await asyncio.sleep(10)

        browser.close = hang
        session = BrowserSession(BrowserConfig(close_timeout=0.01))
        await session.launch()

        await session.close()

        driver.stop.assert_awaited_once()
        assert session.browser is None
