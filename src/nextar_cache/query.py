"""Typed query object for paginated resource reads."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from nextar_cache.keys import normalize_params
from nextar_cache.types import SortOrder

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True, slots=True)
class ResourceQuery:
    """Pagination, sort, search and filters for one list request.

    ``to_params`` is both the request's query string and the input of the
    cache key, so a query that reaches the API and the key it is cached
    under can never disagree.
    """

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str | None = None
    sort_order: SortOrder = "asc"
    search: str = ""
    filters: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError(
                f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}"
            )

    def with_changes(self, **changes: Any) -> ResourceQuery:
        return replace(self, **changes)

    def to_params(self) -> dict[str, str]:
        """Request parameters with empty fields dropped, in sorted order."""
        raw: dict[str, Any] = dict(self.filters)
        raw["page"] = self.page
        raw["limit"] = self.limit
        if self.sort_by:
            raw["sortBy"] = self.sort_by
            raw["sortOrder"] = self.sort_order
        raw["search"] = self.search
        return normalize_params(raw)
