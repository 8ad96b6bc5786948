"""Command-line entry for icsfeed.

Polls a calendar URL and logs cache updates, or with ``--once`` prints the
current display events, or with ``--parse`` dumps a local .ics file as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

from . import _init_logging, run_poller
from .calendar import parse_ics
from .config_loader import load_config
from .feed_logging import configure_feed_logging
from .fetcher import ICSFetcher
from .poller import CalendarPoller

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icsfeed",
        description="icsfeed - poll an iCalendar feed and keep a display-ready event cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m icsfeed --url https://example.com/cal.ics        # poll forever
  python -m icsfeed --url https://example.com/cal.ics --once # fetch once, print events
  python -m icsfeed --parse calendar.ics                     # dump parsed graph
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="YAML config file (default: ./icsfeed.yaml)")
    parser.add_argument("--url", help="Calendar URL (overrides config and ICSFEED_URL)")
    parser.add_argument("--once", action="store_true", help="Run a single poll cycle and print the events")
    parser.add_argument("--parse", metavar="FILE", help="Parse a local .ics file and print it as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if dataclasses.is_dataclass(value):
        return dataclasses.asdict(value)
    return str(value)


def _dump(data: Any) -> None:
    print(json.dumps(data, default=_json_default, indent=2, ensure_ascii=False))


async def _run_once(config: Any) -> int:
    async with ICSFetcher(config) as fetcher:
        poller = CalendarPoller(config, fetcher)
        version = poller.set_source(config.url)
        await poller.fetch_and_update(version)
    _dump(
        {
            "status": poller.cache.status,
            "version": poller.cache.version,
            "events": [event.model_dump() for event in poller.cache.events],
        }
    )
    return 0 if poller.cache.status == "loaded" else 1


def main() -> NoReturn:
    """Run the icsfeed CLI."""
    args = _create_parser().parse_args()

    config = load_config(args.config)
    _init_logging("DEBUG" if args.debug else config.log_level)
    configure_feed_logging(debug_mode=args.debug, log_level=config.log_level)

    if args.parse:
        graph = parse_ics(Path(args.parse).read_text(encoding="utf-8", errors="replace"))
        _dump(graph)
        sys.exit(0)

    if args.url:
        config.url = args.url

    if args.once:
        sys.exit(asyncio.run(_run_once(config)))

    try:
        asyncio.run(run_poller(config))
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    sys.exit(0)


if __name__ == "__main__":
    main()
