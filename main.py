"""CLI entrypoint for operators: preflight, full run and curator health check."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Dict

from auth import clamp_limit, require_configured
from config import get_settings
from core import event_payload
from orchestrator import ProgressChannel
from utils.logger import new_run_id, setup_logging
from webapp.runtime import BrandingServices, build_services


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False))


async def _preflight(services: BrandingServices, limit: int) -> None:
    _print(await services.service.preflight(limit))


async def _run(services: BrandingServices, limit: int) -> None:
    channel = ProgressChannel(new_run_id())
    task = asyncio.ensure_future(services.service.run_pipeline(channel, limit))
    async for event in channel.events():
        _print(event_payload(event))
    await task


async def _curator_check(services: BrandingServices, limit: int) -> None:
    _print(await services.service.curator_check(limit))


COMMANDS = {
    "preflight": _preflight,
    "run": _run,
    "curator-check": _curator_check,
}


async def _main(command: str, requested_limit: Any) -> None:
    settings = get_settings()
    require_configured(settings)
    services = build_services(settings)
    try:
        limit = clamp_limit(requested_limit, settings.darkroom)
        await COMMANDS[command](services, limit)
    finally:
        await services.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Darkroom catalog branding CLI")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("preflight", "list queued items and whether each would be processed"),
        ("run", "process one batch, printing each progress event"),
        ("curator-check", "generate curator notes for one batch and report outcomes"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--limit", default=None)

    args = parser.parse_args()
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    asyncio.run(_main(args.command, args.limit))


if __name__ == "__main__":
    main()
