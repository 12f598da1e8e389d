"""Page dumps for offline debugging of UI detection problems."""

import logging
import tempfile
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


async def dump_page_html(
    page, reason: str, directory: Optional[Path] = None
) -> Optional[Path]:
    """
    Write the rendered page markup to bbb-debug-<epoch-ms>.html.

    Best effort: failures are logged and never raised.

    Args:
        page: Playwright page
        reason: Why the dump was taken (logged only)
        directory: Target directory, defaults to the system temp dir

    Returns:
        Path of the written file, or None if the dump failed.
    """
    try:
        html = await page.content()
        target_dir = Path(directory) if directory else Path(tempfile.gettempdir())
        filename = target_dir / f"bbb-debug-{int(time.time() * 1000)}.html"
        filename.write_text(html, encoding="utf-8")
        logger.debug(f"HTML dumped to {filename} (reason: {reason})")
        return filename
    except Exception as e:
        logger.debug(f"Failed to dump HTML: {e}")
        return None
