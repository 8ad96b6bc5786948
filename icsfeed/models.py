"""Data models for the icsfeed fetch/cache layer."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .timezone_utils import now_utc as _now_utc


class CacheStatus(str, Enum):
    """State of the most recent poll cycle."""

    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"
    INVALID = "invalid"


class ICSSource(BaseModel):
    """Configuration for an ICS calendar source."""

    url: str = Field(..., description="ICS calendar URL")
    timeout: int = Field(default=30, description="HTTP timeout in seconds")
    custom_headers: dict[str, str] = Field(default_factory=dict, description="Custom HTTP headers")


class ICSResponse(BaseModel):
    """Response from ICS fetch operation."""

    success: bool
    content: Optional[str] = None
    status_code: Optional[int] = None
    headers: dict[str, str] = Field(default_factory=dict)
    error_message: Optional[str] = None
    fetch_time: datetime = Field(default_factory=_now_utc)

    # HTTP caching support
    etag: Optional[str] = None
    last_modified: Optional[str] = None


class CachedEvent(BaseModel):
    """Display-ready event extracted from a parsed calendar.

    ``summary`` and ``busy_status`` are kept exactly as parsed, so they may be
    a PropertyValue or a list when the source repeated the property.
    """

    uid: Any = None
    summary: Any = None
    start: Optional[datetime] = None
    end: Any = None
    busy_status: Any = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class EventsCache(BaseModel):
    """Versioned cache of the events currently on display."""

    version: int = 0
    status: Optional[CacheStatus] = None
    events: list[CachedEvent] = Field(default_factory=list)
