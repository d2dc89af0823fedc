"""Command-line interface for the liquidation bot."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import load_config
from .errors import CycleFatalError
from .logging_setup import configure_logging
from .services import LiquidationBot

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="liquidation-bot",
        description="Aave v3 flash-liquidation bot",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    run_parser = sub.add_parser("run", help="Run cycles on the cron schedule")
    run_parser.add_argument(
        "--cron",
        default=None,
        help="Cron expression (overrides scheduler.cron_expression)",
    )
    sub.add_parser("once", help="Run a single liquidation cycle and exit")

    return parser


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and return the exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    async with LiquidationBot(config) as bot:
        if args.command == "once":
            try:
                await bot.run_once()
            except CycleFatalError as e:
                logger.error("Cycle aborted: %s", e)
                return 1
        elif args.command == "run":
            await bot.run_forever(args.cron)
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        sys.exit(asyncio.run(_run(args)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
