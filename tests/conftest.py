"""Pytest configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add project paths
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tool_modules.aa_bbb_stress.src.config import JoinTimeouts, reset_config  # noqa: E402
from tests.fake_page import FakePage, FakeSession  # noqa: E402

BBB_ENV_VARS = (
    "BBB_URL",
    "BBB_SECRET",
    "BBB_CHECKSUM_ALGORITHM",
    "CHROMIUM_EXECUTABLE_PATH",
    "PUPPETEER_EXECUTABLE_PATH",
)


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def setup_env():
    """Set up environment variables for testing."""
    # Save original values
    original_env = dict(os.environ)

    # Set test environment
    os.environ.setdefault("TESTING", "1")
    for name in BBB_ENV_VARS:
        os.environ.pop(name, None)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from a freshly built global config."""
    reset_config()
    yield
    reset_config()


# ============================================================================
# Join flow fixtures
# ============================================================================


@pytest.fixture
def fast_timeouts():
    """Production wait windows, but without the fixed pauses."""
    return JoinTimeouts(modal_grace=0, retry_escape_pause=0, webcam_settle=0)


@pytest.fixture
def happy_page():
    """A page where every control the join flow looks for is present."""
    return FakePage.always_succeeds()


@pytest.fixture
def happy_session():
    """A session that hands out a fresh fully working page per participant."""
    return FakeSession(page_factory=FakePage.always_succeeds)
