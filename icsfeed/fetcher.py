"""HTTP fetcher for remote ICS calendar files."""

import asyncio
import logging
import random
from typing import Any, NoReturn, Optional
from urllib.parse import urlparse

import httpx

from .http_client import DEFAULT_BROWSER_HEADERS, create_client
from .models import ICSResponse, ICSSource

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 30.0
JITTER_MIN_FACTOR = 0.1
JITTER_MAX_FACTOR = 0.3


class ICSFetchError(Exception):
    """Base exception for ICS fetch errors."""


class ICSAuthError(ICSFetchError):
    """Authentication error during ICS fetch."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ICSNetworkError(ICSFetchError):
    """Network error during ICS fetch."""


class ICSTimeoutError(ICSFetchError):
    """Timeout error during ICS fetch."""


def _raise_client_not_initialized() -> NoReturn:
    raise ICSFetchError("HTTP client not initialized")


def is_valid_url(url: Any) -> bool:
    """Return True for an http(s) URL with a host."""
    if not isinstance(url, str) or not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


class ICSFetcher:
    """Async HTTP client for downloading ICS calendar files."""

    def __init__(self, settings: Any, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize ICS fetcher.

        Args:
            settings: Object exposing request_timeout, max_retries and
                retry_backoff_factor (missing attributes use defaults)
            client: Optional externally owned client; it is never closed here
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

        logger.debug("ICS fetcher initialized (external_client: %s)", not self._owns_client)

    async def __aenter__(self) -> "ICSFetcher":
        await self._ensure_client()
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self.client is not None and self._owns_client:
            if not self.client.is_closed:
                await self.client.aclose()
                logger.debug("Closed HTTP client")
            self.client = None

    async def _ensure_client(self) -> None:
        if self.client is None or self.client.is_closed:
            request_timeout = float(getattr(self.settings, "request_timeout", 30))
            self.client = create_client(read_timeout=request_timeout)
            self._owns_client = True

    async def fetch_ics(self, source: ICSSource) -> ICSResponse:
        """Download ICS content from source.

        Args:
            source: Source configuration (url, timeout, custom_headers)

        Returns:
            ICSResponse with ``success`` set; unsuccessful responses carry an
            ``error_message`` and, where there was one, the HTTP status

        Raises:
            ICSAuthError: HTTP 401/403
            ICSNetworkError: Connection failures after all retries
            ICSTimeoutError: Timeouts after all retries
            ICSFetchError: Anything else unexpected
        """
        if not is_valid_url(source.url):
            logger.error("Refusing to fetch invalid URL: %r", source.url)
            return ICSResponse(success=False, error_message="Invalid calendar URL", status_code=None)

        await self._ensure_client()

        try:
            logger.debug("Fetching ICS from %s", source.url)
            response = await self._make_request_with_retry(
                source.url, dict(source.custom_headers), source.timeout
            )
            return self._create_response(response)

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("HTTP error fetching ICS from %s: %s", source.url, status)
            if status in (401, 403):
                raise ICSAuthError(
                    "Authentication failed - check calendar URL credentials", status
                ) from e
            return ICSResponse(
                success=False,
                status_code=status,
                error_message=f"HTTP {status}: {e.response.reason_phrase}",
                headers=dict(e.response.headers),
            )

        except httpx.TimeoutException as e:
            raise ICSTimeoutError(f"Request timeout after {source.timeout}s") from e

        except httpx.NetworkError as e:
            raise ICSNetworkError(f"Network error: {e}") from e

        except ICSFetchError:
            raise

        except Exception as e:
            logger.exception("Unexpected error fetching ICS from %s", source.url)
            raise ICSFetchError(f"Unexpected error: {e}") from e

    def _calculate_backoff(self, attempt: int, backoff_factor: float) -> float:
        """Exponential backoff with jitter, capped at MAX_BACKOFF_SECONDS."""
        base_backoff = min(backoff_factor**attempt, MAX_BACKOFF_SECONDS)
        jitter = random.uniform(JITTER_MIN_FACTOR, JITTER_MAX_FACTOR) * base_backoff  # nosec B311 - jitter not cryptographic
        return base_backoff + jitter

    async def _make_request_with_retry(
        self, url: str, headers: dict[str, str], timeout: int
    ) -> httpx.Response:
        max_retries = int(getattr(self.settings, "max_retries", 3))
        backoff_factor = float(getattr(self.settings, "retry_backoff_factor", 1.5))
        attempt = 0

        while True:
            if self.client is None:
                _raise_client_not_initialized()
            try:
                response = await self.client.get(
                    url, headers={**DEFAULT_BROWSER_HEADERS, **headers}, timeout=timeout
                )
                response.raise_for_status()
                logger.debug(
                    "Fetched ICS from %s (attempt %d) - %d bytes",
                    url,
                    attempt + 1,
                    len(response.content),
                )
                return response

            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt >= max_retries:
                    logger.error("All %d attempts failed for %s: %s", attempt + 1, url, e)
                    raise
                backoff_time = self._calculate_backoff(attempt, backoff_factor)
                logger.warning(
                    "Request failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1,
                    max_retries + 1,
                    backoff_time,
                    e,
                )
                await asyncio.sleep(backoff_time)
                attempt += 1

    def _create_response(self, http_response: httpx.Response) -> ICSResponse:
        headers = dict(http_response.headers)

        content = http_response.text
        content_type = headers.get("content-type", "").lower()
        if content_type and not any(ct in content_type for ct in ("text/calendar", "text/plain")):
            logger.warning("Unexpected content type: %s", content_type)

        if not content or not content.strip():
            logger.error("Empty ICS content received")
            return ICSResponse(
                success=False,
                status_code=http_response.status_code,
                error_message="Empty content received",
                headers=headers,
            )

        if "BEGIN:VCALENDAR" not in content:
            logger.warning("Content does not appear to be valid ICS format")

        return ICSResponse(
            success=True,
            content=content,
            status_code=http_response.status_code,
            headers=headers,
            etag=headers.get("etag"),
            last_modified=headers.get("last-modified"),
        )
