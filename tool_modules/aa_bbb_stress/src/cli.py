#!/usr/bin/env python3
"""
BigBlueButton stress test CLI.

Joins synthetic participants to a running meeting and keeps them there.

Usage:
    # One webcam user, two talkers, ten listeners for five minutes
    bbb-stress -m my-meeting -d 300 --webcams 1 --microphones 2 --listening 10

Environment:
    BBB_URL      BigBlueButton server, e.g. https://bbb.example.com/bigbluebutton/
    BBB_SECRET   Shared API secret (bbb-conf --secret)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from tool_modules.aa_bbb_stress.src.config import get_config
from tool_modules.aa_bbb_stress.src.coordinator import ClientCounts, StressTestCoordinator
from tool_modules.aa_bbb_stress.src.errors import StressTestError
from tool_modules.aa_bbb_stress.src.gateway_client import BigBlueButtonClient

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Log to stderr; DEBUG with --verbose, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def create_argument_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="bbb-stress",
        description="Stress a BigBlueButton meeting with browser-driven participants",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-m", "--meeting", required=True, help="Meeting ID to join")
    parser.add_argument(
        "-d",
        "--duration",
        type=_non_negative_float,
        default=config.default_duration,
        help=f"Seconds to stay in the meeting once everyone joined (default: {config.default_duration:g})",
    )
    parser.add_argument(
        "--webcams",
        type=_non_negative_int,
        default=0,
        help="Participants sharing webcam and microphone (default: 0)",
    )
    parser.add_argument(
        "--microphones",
        type=_non_negative_int,
        default=0,
        help="Participants sharing microphone only (default: 0)",
    )
    parser.add_argument(
        "--listening",
        type=_non_negative_int,
        default=1,
        help="Listen-only participants (default: 1)",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=config.concurrency,
        help=f"Join attempts in flight at once (default: {config.concurrency})",
    )
    parser.add_argument("--report", type=Path, help="Write a JSON run report to this file")
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    if args.webcams + args.microphones + args.listening == 0:
        parser.error("at least one participant is required")
    return args


async def run_stress_test(args: argparse.Namespace) -> int:
    config = get_config()
    config.concurrency = args.concurrency
    if args.headful:
        config.browser.headless = False

    gateway = BigBlueButtonClient.from_config(config.gateway)
    coordinator = StressTestCoordinator(gateway, config=config)
    counts = ClientCounts(
        camera=args.webcams,
        microphone=args.microphones,
        listen_only=args.listening,
    )
    run = await coordinator.start(args.meeting, args.duration, counts)

    if args.report:
        run.save_report(args.report)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        return asyncio.run(run_stress_test(args))
    except StressTestError as e:
        logger.error(f"Stress test aborted: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
