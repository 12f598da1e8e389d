#!/usr/bin/env python3
"""Entry point for running the stress tool as a module."""

import sys

from tool_modules.aa_bbb_stress.src.cli import main

if __name__ == "__main__":
    sys.exit(main())
