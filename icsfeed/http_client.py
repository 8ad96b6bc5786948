"""HTTP client construction for calendar downloads."""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

# Some Exchange/Outlook endpoints refuse obviously non-browser clients.
DEFAULT_BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/calendar,text/plain;q=0.9,*/*;q=0.8",
}

DEFAULT_LIMITS = httpx.Limits(max_connections=4, max_keepalive_connections=2)


def build_timeout(read_timeout: float = 30.0) -> httpx.Timeout:
    """Build the client timeout with a configurable read timeout."""
    return httpx.Timeout(connect=10.0, read=read_timeout, write=10.0, pool=30.0)


def create_client(
    read_timeout: float = 30.0,
    limits: Optional[httpx.Limits] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient configured for calendar fetching.

    Args:
        read_timeout: Read timeout in seconds
        limits: Connection pool limits (defaults to a small pool)
        transport: Optional transport override, used by tests

    Returns:
        A new httpx.AsyncClient; the caller owns and must close it
    """
    client = httpx.AsyncClient(
        limits=limits or DEFAULT_LIMITS,
        timeout=build_timeout(read_timeout),
        follow_redirects=True,
        verify=True,
        headers=DEFAULT_BROWSER_HEADERS,
        transport=transport,
    )
    logger.debug("Created HTTP client (read_timeout=%.1fs)", read_timeout)
    return client
