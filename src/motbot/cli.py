"""Command-line entry point: ``motbot`` / ``python -m motbot``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from motbot.application import MotBot
from motbot.config import BotConfig
from motbot.exceptions import ConfigError, MotBotError

_logger = logging.getLogger("motbot")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="motbot",
        description="Telegram bot that reports MOT history and tax status for UK registrations.",
    )
    parser.add_argument("--env-file", default=".env", help="dotenv file to load before reading the environment")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="root log level",
    )
    parser.add_argument("--db-path", default=None, help="override SQLITE_DB_PATH")
    return parser.parse_args(argv)


async def _serve(config: BotConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:  # pragma: no cover - Windows
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))

    async with MotBot(config) as bot:
        await bot.run(stop)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not load_dotenv(args.env_file):
        _logger.info("No .env file found, using environment variables")

    overrides = {"sqlite_db_path": args.db_path} if args.db_path else {}
    try:
        config = BotConfig.from_env(**overrides)
        config.validate()
    except ConfigError as exc:
        print(f"motbot: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(_serve(config))
    except MotBotError as exc:
        _logger.error("Bot stopped with error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
