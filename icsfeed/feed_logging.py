"""
Central logging configuration for icsfeed.

Suppresses verbose debug logs from third-party libraries while keeping the
icsfeed modules at the requested verbosity.
"""

import logging
import os
from typing import Optional

DEBUG_ENV = "ICSFEED_DEBUG"
LOG_LEVEL_ENV = "ICSFEED_LOG_LEVEL"

# Third-party loggers that flood DEBUG output on every poll
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "charset_normalizer")

_ROOT_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

FEED_MODULES = (
    "icsfeed",
    "icsfeed.calendar",
    "icsfeed.fetcher",
    "icsfeed.poller",
    "icsfeed.event_filter",
)


def configure_feed_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for icsfeed.

    Args:
        debug_mode: Whether to enable debug logging for icsfeed modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Level for the root and icsfeed loggers when debug is off

    Environment Variables:
        ICSFEED_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        ICSFEED_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv(DEBUG_ENV, "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv(LOG_LEVEL_ENV, "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    feed_level = logging.DEBUG if final_debug else logging.INFO
    if not final_debug and log_level and log_level.upper() in _ROOT_LEVELS:
        feed_level = getattr(logging, log_level.upper())

    root_level = feed_level
    if env_log_level in _ROOT_LEVELS:
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    for module in FEED_MODULES:
        logging.getLogger(module).setLevel(feed_level)

    if final_debug:
        root_logger.info("Debug logging enabled for icsfeed modules")
    else:
        root_logger.info("Production logging configuration applied")


def reset_logging_to_debug() -> None:
    """Reset all loggers, including suppressed third-party ones, to DEBUG."""
    logging.getLogger().setLevel(logging.DEBUG)
    for logger_name in (*NOISY_LOGGERS, *FEED_MODULES):
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("icsfeed", "httpx", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
