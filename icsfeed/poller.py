"""Polling loop that keeps an EventsCache in sync with a remote calendar."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, Callable, Optional

from .calendar import ICSParser
from .event_filter import EventFilter
from .fetcher import ICSFetchError, ICSFetcher, is_valid_url
from .models import CachedEvent, CacheStatus, EventsCache, ICSSource

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class CalendarPoller:
    """Owns the events cache and refreshes it from one calendar URL.

    Every call to ``set_source`` bumps ``loaded_url_version``. A cycle runs
    with the version current when it started, and its result is discarded
    if the version has moved on by the time the download completes. Only
    the polling task writes to ``cache``.
    """

    def __init__(
        self,
        config: Any,
        fetcher: ICSFetcher,
        event_filter: Optional[EventFilter] = None,
        parser: Optional[ICSParser] = None,
        cache: Optional[EventsCache] = None,
        sleep: SleepFunc = asyncio.sleep,
        on_update: Optional[Callable[[EventsCache], None]] = None,
    ) -> None:
        """Initialize the poller.

        Args:
            config: Settings with refresh_interval_minutes,
                invalid_url_retry_seconds and request_timeout
            fetcher: Fetcher used to download the calendar
            event_filter: Filter applied to each parsed calendar
            parser: ICS parser (a fresh ICSParser by default)
            cache: Cache to write into (a new EventsCache by default)
            sleep: Awaitable delay, replaced in tests
            on_update: Called with the cache after each successful cycle
        """
        self.config = config
        self.fetcher = fetcher
        self.event_filter = event_filter or EventFilter(
            hours_spread=getattr(config, "hours_spread", 36)
        )
        self.parser = parser or ICSParser()
        self.cache = cache or EventsCache()
        self.on_update = on_update
        self._sleep = sleep
        self._running = False
        self.source: Optional[ICSSource] = None
        self.loaded_url_version = 0

    def set_source(self, url: str) -> int:
        """Point the poller at a new URL and return the new version token."""
        self.source = ICSSource(url=url or "", timeout=getattr(self.config, "request_timeout", 30))
        self.loaded_url_version += 1
        logger.info("Calendar source set to %s (version %d)", url, self.loaded_url_version)
        return self.loaded_url_version

    def stop(self) -> None:
        self._running = False

    def update_events_cache(self, data: str, version: int) -> Optional[list[CachedEvent]]:
        """Parse ``data`` and store the display events.

        Returns:
            The filtered, sorted events, or None when ``version`` is stale
        """
        if version != self.loaded_url_version:
            logger.debug("Discarding calendar data for stale version %d", version)
            return None

        graph = self.parser.parse(data)
        events = self.event_filter.select_display_events(graph)

        if events != self.cache.events:
            self.cache.version += 1
            logger.info(
                "Events changed (%d events); cache version now %d",
                len(events),
                self.cache.version,
            )
        self.cache.events = events
        return events

    async def fetch_and_update(self, version: int) -> None:
        """Run one poll cycle. Failures are logged and recorded in the cache status."""
        if version != self.loaded_url_version or self.source is None:
            return

        self.cache.status = CacheStatus.LOADING
        try:
            response = await self.fetcher.fetch_ics(self.source)
            if not response.success:
                raise ICSFetchError(response.error_message or "Calendar fetch failed")
            if self.update_events_cache(response.content or "", version) is None:
                return
        except Exception:
            self.cache.status = CacheStatus.ERROR
            logger.exception("There has been a problem fetching %s", self.source.url)
            return

        self.cache.status = CacheStatus.LOADED
        if self.on_update is not None:
            self.on_update(self.cache)

    async def run(self, version: Optional[int] = None) -> None:
        """Poll until stopped or until a newer source replaces ``version``.

        An invalid URL is re-checked every ``invalid_url_retry_seconds``;
        otherwise each cycle, successful or not, is followed by a
        ``refresh_interval_minutes`` delay.
        """
        if version is None:
            version = self.loaded_url_version
        self._running = True

        while self._running and version == self.loaded_url_version:
            url = self.source.url if self.source is not None else None
            if not is_valid_url(url):
                self.cache.status = CacheStatus.INVALID
                logger.warning("Calendar URL %r is not valid; retrying", url)
                await self._sleep(float(getattr(self.config, "invalid_url_retry_seconds", 1.0)))
                continue

            await self.fetch_and_update(version)
            await self._sleep(float(getattr(self.config, "refresh_interval_minutes", 5)) * 60)

        logger.debug("Polling loop for version %d finished", version)
