from collections.abc import Generator
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import Mock

import pytest


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object shared by fetcher and poller tests.

    Fields mirror icsfeed.config_loader.Config so tests do not depend on
    config file loading.
    """
    return SimpleNamespace(
        url="https://calendar.example.com/calendar.ics",
        refresh_interval_minutes=5,
        hours_spread=36,
        request_timeout=30,
        max_retries=2,
        retry_backoff_factor=1.5,
        invalid_url_retry_seconds=1.0,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 7, 4, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def time_provider(fixed_now: datetime) -> Mock:
    """Clock pinned to noon UTC, July 4 2024."""
    provider = Mock()
    provider.now_utc.return_value = fixed_now
    return provider


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Keep icsfeed environment overrides from leaking between tests."""
    for name in ("ICSFEED_TEST_TIME", "ICSFEED_URL", "ICSFEED_DEBUG", "ICSFEED_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
