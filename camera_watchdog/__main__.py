"""Command line entry point for the camera watchdog daemon."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from camera_watchdog.config import VALID_LOG_LEVELS, get_config
from camera_watchdog.logging_setup import configure_logging
from camera_watchdog.scheduler import Scheduler

logger = logging.getLogger("camera_watchdog.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="camera-watchdog",
        description="Probe a camera stream endpoint and restart its processes when it fails",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from the environment:
  WATCH_URL, WATCH_INTERVAL_MS, FAILURE_THRESHOLD, WATCH_STALENESS_WINDOW,
  WATCH_COOLDOWN, WATCH_PROBE_TIMEOUT, WATCH_LOG_DIR, WATCH_PM2_APPS,
  WATCH_LOG_LINES, WATCH_LOG_TIMEOUT, WATCH_SUPERVISOR_BIN,
  WATCH_SUPERVISOR_TIMEOUT, LOG_LEVEL

Examples:
  # Run forever with defaults
  python -m camera_watchdog

  # Single probe cycle with debug output
  python -m camera_watchdog --once --log-level DEBUG
        """,
    )
    parser.add_argument("--once", action="store_true", help="Run a single tick and exit")
    parser.add_argument(
        "--log-level",
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Override LOG_LEVEL",
    )
    return parser


async def _serve(scheduler: Scheduler, once: bool) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.stop)
        except (NotImplementedError, RuntimeError):
            pass

    await scheduler.run(max_ticks=1 if once else None)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ValueError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration: {e}")
        return 1

    configure_logging(config, level=args.log_level)
    scheduler = Scheduler(config)

    asyncio.run(_serve(scheduler, args.once))
    return 0


if __name__ == "__main__":
    sys.exit(main())
