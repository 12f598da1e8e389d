"""
BBB Stress Test Configuration.

Centralizes all configuration for the stress tool including:
- Conference gateway (BigBlueButton API) location and secret
- Browser launch settings
- Every UI wait window used by the join flow
- Run defaults (pacing, duration, diagnostics)

Precedence, lowest first: dataclass defaults, the ``bbb_stress`` section of
config.json, a .env file, then environment variables.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from tool_modules.common import PROJECT_ROOT, get_config_section

logger = logging.getLogger(__name__)

CONFIG_SECTION = "bbb_stress"

# Chromium flags: no sandbox, no GPU, simulated media devices, muted output
DEFAULT_LAUNCH_FLAGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-extensions",
    "--disable-crash-reporter",
    "--disable-background-networking",
    "--use-fake-device-for-media-stream",
    "--use-fake-ui-for-media-stream",
    "--mute-audio",
)


@dataclass
class GatewayConfig:
    """BigBlueButton API settings."""

    # e.g. https://bbb.example.com/bigbluebutton/
    url: str = ""
    secret: str = ""

    # sha1 is the BigBlueButton default; sha256/sha384/sha512 are accepted too
    checksum_algorithm: str = "sha1"

    # Seconds for a single API request
    request_timeout: float = 10.0


@dataclass
class BrowserConfig:
    """Chromium launch settings."""

    # None uses the Chromium build bundled with Playwright
    executable_path: Optional[str] = None
    headless: bool = True

    # Appended after DEFAULT_LAUNCH_FLAGS; the fixed flags cannot be removed
    extra_launch_flags: list[str] = field(default_factory=list)

    # Seconds to wait for browser.close() before giving up on it
    close_timeout: float = 10.0

    @property
    def launch_args(self) -> list[str]:
        """Fixed flags first, then any extras not already present."""
        args = list(DEFAULT_LAUNCH_FLAGS)
        args.extend(flag for flag in self.extra_launch_flags if flag not in args)
        return args


@dataclass
class JoinTimeouts:
    """Wait windows for the join flow, in seconds.

    ``None`` means wait forever.
    """

    # Page load of the join URL
    navigation: Optional[float] = 30.0

    # Initial "Microphone" / "Listen only" choice
    audio_prompt: Optional[float] = 30.0

    # Echo-test confirmation; absence means echo test is disabled
    echo_test: Optional[float] = 10.0

    # Modal-close detector (a): main meeting UI appears (newer UI)
    main_ui: Optional[float] = 3.0

    # Modal-close detector (b): legacy ReactModal overlay goes away
    legacy_overlay: Optional[float] = 2.0

    # Pause after both modal-close detectors missed
    modal_grace: float = 0.5

    # Mute/Unmute control after the first audio join
    mic_verify: Optional[float] = 5.0

    # Pause after pressing Escape at the start of the retry cycle
    retry_escape_pause: float = 0.5

    # Toolbar "join audio" button at the start of the retry cycle
    toolbar_join_audio: Optional[float] = 5.0

    # Mute/Unmute control after the retry cycle
    retry_verify: Optional[float] = 10.0

    # "Share webcam" button
    share_webcam: Optional[float] = 30.0

    # Fixed pause for the webcam settings dialog to render
    webcam_settle: float = 2.0

    # Camera <option> list; absence is tolerated
    camera_select: Optional[float] = 5.0

    # "Start sharing" button. Unbounded: a missing button hangs the run.
    start_sharing: Optional[float] = None


@dataclass
class StressConfig:
    """Main configuration for the stress tool."""

    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    timeouts: JoinTimeouts = field(default_factory=JoinTimeouts)

    # Maximum join attempts in flight; 1 joins participants strictly one at a time
    concurrency: int = 1

    # Seconds to keep everyone in the meeting after the roster is done
    default_duration: float = 60.0

    # Where page dumps go when modal-close detection is ambiguous
    diagnostics_dir: Path = Path(tempfile.gettempdir())


def _apply_section(target: Any, values: dict) -> None:
    """Copy known keys from a config.json section onto a dataclass."""
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            logger.warning(f"Unknown {CONFIG_SECTION} config key: {key}")
            continue
        current = getattr(target, key)
        if isinstance(value, dict) and hasattr(current, "__dataclass_fields__"):
            _apply_section(current, value)
        elif isinstance(current, Path):
            setattr(target, key, Path(os.path.expanduser(value)))
        else:
            setattr(target, key, value)


def _apply_environment(config: StressConfig) -> None:
    """Environment variables override file settings."""
    if os.environ.get("BBB_URL"):
        config.gateway.url = os.environ["BBB_URL"]
    if os.environ.get("BBB_SECRET"):
        config.gateway.secret = os.environ["BBB_SECRET"]
    if os.environ.get("BBB_CHECKSUM_ALGORITHM"):
        config.gateway.checksum_algorithm = os.environ["BBB_CHECKSUM_ALGORITHM"]

    executable = os.environ.get("CHROMIUM_EXECUTABLE_PATH") or os.environ.get(
        "PUPPETEER_EXECUTABLE_PATH"
    )
    if executable:
        config.browser.executable_path = executable


def build_config(section: Optional[dict] = None, use_dotenv: bool = True) -> StressConfig:
    """Build a config from defaults, config.json and the environment.

    Args:
        section: Use this dict instead of reading config.json
        use_dotenv: Load .env files before reading the environment
    """
    config = StressConfig()

    if section is None:
        section = get_config_section(CONFIG_SECTION)
    if section:
        _apply_section(config, section)

    if use_dotenv:
        load_dotenv(PROJECT_ROOT / ".env")
        load_dotenv()
    _apply_environment(config)

    return config


# Global config instance
_config: Optional[StressConfig] = None


def get_config() -> StressConfig:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = build_config()
    return _config


def update_config(**kwargs) -> StressConfig:
    """Update config with new values."""
    global _config
    if _config is None:
        _config = build_config()
    for key, value in kwargs.items():
        if hasattr(_config, key):
            setattr(_config, key, value)
        else:
            logger.warning(f"Ignoring unknown config field: {key}")
    return _config


def reset_config() -> None:
    """Drop the global config so the next get_config() rebuilds it."""
    global _config
    _config = None
