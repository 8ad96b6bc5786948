"""icsfeed - tolerant iCalendar parsing and a polling event cache.

The parser lives in :mod:`icsfeed.calendar`; the fetch/cache layer in
:mod:`icsfeed.poller`.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the ICSFEED_DEBUG environment variable (truthy values: "1",
    "true", "yes", "on"), which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("ICSFEED_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message; only the level is colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


async def run_poller(config: Any) -> None:
    """Poll the configured calendar until cancelled, logging each update."""
    import logging

    from .fetcher import ICSFetcher
    from .poller import CalendarPoller

    logger = logging.getLogger(__name__)

    def _report(cache: Any) -> None:
        logger.info("Cache version %s: %d events", cache.version, len(cache.events))

    async with ICSFetcher(config) as fetcher:
        poller = CalendarPoller(config, fetcher, on_update=_report)
        version = poller.set_source(getattr(config, "url", ""))
        await poller.run(version)
