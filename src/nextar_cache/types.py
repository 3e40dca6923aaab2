"""Core types for the nextar cache layer."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")

# "30s", "5m", "2h", "1d", a timedelta, or milliseconds
Duration = str | int | timedelta

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with its expiry and tags."""

    key: str
    value: T
    expires_at: int  # Unix timestamp ms
    tags: frozenset[str]
    created_at: int  # Unix timestamp ms

    def is_expired(self, now: int) -> bool:
        """An entry is gone once ``now`` reaches ``expires_at``."""
        return now >= self.expires_at


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Counters exposed for debugging panels."""

    size: int
    hits: int
    misses: int


@dataclass(frozen=True, slots=True)
class Page:
    """One page of records as returned by a list endpoint.

    ``summary`` holds the statistics some endpoints send along with the page.
    """

    items: list[dict[str, Any]]
    total: int = 0
    total_pages: int = 0
    summary: dict[str, Any] | None = None


@dataclass(slots=True)
class Pagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0


@dataclass(slots=True)
class ResourceState:
    """UI-facing state of one resource hook. Never cached."""

    items: list[dict[str, Any]] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)
    loading: bool = False
    error: str | None = None
    filters: dict[str, Any] = field(default_factory=dict)
    search_term: str = ""
    sort_by: str | None = None
    sort_order: SortOrder = "asc"
    stats: dict[str, Any] | None = None
