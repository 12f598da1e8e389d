"""Common utilities for tool modules.

This module provides shared infrastructure for all tool modules,
reducing boilerplate and ensuring consistency.

Usage in tool modules:
    from tool_modules.common import PROJECT_ROOT, load_config

    settings = load_config().get("bbb_stress", {})
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Compute project root once at import time
# This file is at: tool_modules/common/__init__.py
# Project root is 2 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent


def config_paths() -> list[Path]:
    """Standard config.json locations, in order of preference."""
    return [
        Path.cwd() / "config.json",
        PROJECT_ROOT / "config.json",
    ]


def load_config(paths: Optional[list[Path]] = None) -> Dict[str, Any]:
    """
    Load config.json from standard locations.

    Searches in order:
    1. Current working directory
    2. Project root

    Returns:
        Config dict, or empty dict if not found
    """
    for config_path in paths if paths is not None else config_paths():
        if config_path.exists():
            try:
                with open(config_path) as f:
                    return json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Ignoring unreadable config {config_path}: {e}")
                continue
    return {}


def get_config_section(
    section: str,
    default: Optional[Dict] = None,
    paths: Optional[list[Path]] = None,
) -> Dict[str, Any]:
    """
    Get a specific section from config.json.

    Args:
        section: Top-level key in config (e.g., 'bbb_stress')
        default: Default value if section not found
        paths: Override the search locations (tests)

    Returns:
        Section dict or default
    """
    config = load_config(paths)
    return config.get(section, default or {})
