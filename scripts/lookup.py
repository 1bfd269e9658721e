#!/usr/bin/env python3
"""Run one registration lookup against the live providers and print the report.

Uses the same environment variables as the bot (``MOT_*``, ``VES_*``) but
does not touch Telegram or the usage log. Handy for checking credentials
and eyeballing the rendered report.

Usage::

    python scripts/lookup.py AB12CDE
    python scripts/lookup.py AB12CDE --raw     # dump both provider payloads as JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from motbot import BotConfig, MotBotError, format_report  # noqa: E402
from motbot._api.mot import MotHistoryClient  # noqa: E402
from motbot._api.oauth import ClientCredentialsTokenProvider  # noqa: E402
from motbot._api.ves import VesClient  # noqa: E402
from motbot._transport import HttpTransport  # noqa: E402
from motbot.models import MotVehicle, VesVehicle  # noqa: E402


async def fetch_records(mot: MotHistoryClient, ves: VesClient, registration: str) -> tuple[MotVehicle, VesVehicle]:
    """Fetch both records; a failing fetch cancels its sibling before returning."""
    async with asyncio.TaskGroup() as group:
        mot_task = group.create_task(mot.fetch(registration))
        ves_task = group.create_task(ves.fetch(registration))
    return mot_task.result(), ves_task.result()


async def _lookup(config: BotConfig, registration: str, raw: bool) -> int:
    async with aiohttp.ClientSession() as session:
        http = HttpTransport(session)
        tokens = ClientCredentialsTokenProvider(
            http,
            token_url=config.mot_token_url,
            client_id=config.mot_client_id,
            client_secret=config.mot_client_secret,
            scope=config.mot_scope,
        )
        mot = MotHistoryClient(http, tokens, api_key=config.mot_api_key, base_url=config.mot_base_url)
        ves = VesClient(http, api_key=config.ves_api_key, base_url=config.ves_base_url)
        try:
            mot_record, ves_record = await fetch_records(mot, ves, registration)
        except ExceptionGroup as failures:
            matched, rest = failures.split(MotBotError)
            if rest is not None:
                raise rest from None
            for exc in matched.exceptions:
                print(f"lookup failed: {type(exc).__name__}: {exc}", file=sys.stderr)
            return 1

    if raw:
        print(json.dumps({"mot": mot_record.raw, "ves": ves_record.raw}, indent=2, sort_keys=True))
    else:
        print(format_report(mot_record, ves_record))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("registration")
    parser.add_argument("--raw", action="store_true", help="print provider payloads instead of the report")
    parser.add_argument("--debug", action="store_true", help="enable DEBUG logging (secrets are redacted)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)
    load_dotenv(_repo / ".env")
    config = BotConfig.from_env()
    return asyncio.run(_lookup(config, args.registration.strip(), args.raw))


if __name__ == "__main__":
    sys.exit(main())
