"""icsfeed.config_loader

Config loader for icsfeed.

- Reads YAML (PyYAML ``safe_load``; JSON files load too since JSON is YAML).
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
- ``ICSFEED_URL`` in the environment overrides the configured URL.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

URL_ENV = "ICSFEED_URL"
DEFAULT_CONFIG_PATH = Path("icsfeed.yaml")


@dataclass
class Config:
    """Typed configuration for icsfeed.

    Fields:
        url: ICS calendar URL to poll
        refresh_interval_minutes: delay between poll cycles (1..1440)
        hours_spread: width of the display window in hours, centred on now
        request_timeout: HTTP read timeout in seconds
        max_retries: retries for timeouts and network errors
        retry_backoff_factor: base of the exponential retry backoff
        invalid_url_retry_seconds: delay before re-checking an invalid URL
        log_level: logging level name
    """

    url: str = ""
    refresh_interval_minutes: int = 5
    hours_spread: float = 36.0
    request_timeout: int = 30
    max_retries: int = 3
    retry_backoff_factor: float = 1.5
    invalid_url_retry_seconds: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced, and refresh_interval_minutes is kept
        within 1..1440. Each coercion logs a warning.
        """
        if data is None:
            data = {}

        def _coerce(key: str, default: Any, kind: type) -> Any:
            raw = data.get(key, default)
            try:
                return kind(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not a %s; using default %r", key, raw, kind.__name__, default)
                return default

        refresh = _coerce("refresh_interval_minutes", 5, int)
        if refresh < 1:
            logger.warning("refresh_interval_minutes %d below minimum; coercing to 1", refresh)
            refresh = 1
        elif refresh > 1440:
            logger.warning("refresh_interval_minutes %d above maximum; coercing to 1440", refresh)
            refresh = 1440

        url = data.get("url") or ""

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            url=str(url),
            refresh_interval_minutes=refresh,
            hours_spread=_coerce("hours_spread", 36.0, float),
            request_timeout=_coerce("request_timeout", 30, int),
            max_retries=_coerce("max_retries", 3, int),
            retry_backoff_factor=_coerce("retry_backoff_factor", 1.5, float),
            invalid_url_retry_seconds=_coerce("invalid_url_retry_seconds", 1.0, float),
            log_level=log_level,
        )


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to ./icsfeed.yaml.

    Returns:
        Config dataclass instance with values from file (or defaults).

    Behavior:
    - If file is missing: returns Config() with defaults.
    - If file exists but top-level is not a mapping: raises ValueError.
    - ICSFEED_URL, when set, replaces the configured url.
    """
    p = Path(path) if path else DEFAULT_CONFIG_PATH
    logger.debug("Attempting to load config from %s", p)

    if p.exists():
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
            raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
        cfg = Config.from_dict(raw)
        logger.info("Loaded configuration from %s", p)
    else:
        logger.info("Config file %s not found; using defaults", p)
        cfg = Config()

    env_url = os.environ.get(URL_ENV)
    if env_url:
        logger.debug("Using calendar URL from %s", URL_ENV)
        cfg.url = env_url

    logger.debug("Configuration values: %s", cfg)
    return cfg
