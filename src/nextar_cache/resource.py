"""Resource hooks: UI state backed by the cache store and the fetcher.

A :class:`ResourceHook` owns the reactive state of one list view (current
page, sort, search, filters, loaded items) and keeps it in sync with the
server through a shared :class:`~nextar_cache.store.CacheStore`:

- reads build a key from the current query and answer from the store when
  they can, otherwise fetch and populate it;
- mutations invalidate every entry tagged with the resource and reload;
- responses that arrive after a newer read was issued are dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from nextar_cache.coalesce import RequestCoalescer
from nextar_cache.errors import FetchError, UnknownFilterError
from nextar_cache.fetcher import Fetcher
from nextar_cache.keys import build_key, is_empty
from nextar_cache.query import DEFAULT_LIMIT, ResourceQuery
from nextar_cache.store import CacheStore
from nextar_cache.types import Duration, Page, Pagination, ResourceState, SortOrder

T = TypeVar("T")

STATS_TAG = "stats"
# Smallest page that still carries the server-side statistics
STATS_PAGE_PARAMS = {"page": "1", "limit": "1"}

logger = structlog.get_logger(__name__)


def count_summary(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"total": len(items)}


@dataclass(frozen=True)
class ResourceDefinition:
    """Static description of one REST resource as seen by its hooks."""

    name: str
    filter_fields: tuple[str, ...] = ()
    ttl: Duration = "5m"
    stats_ttl: Duration = "10m"
    extra_tags: tuple[str, ...] = ()
    default_sort_by: str | None = "nome"
    default_sort_order: SortOrder = "asc"
    default_limit: int = DEFAULT_LIMIT
    default_filters: Callable[[], dict[str, Any]] = dict
    summarize: Callable[[list[dict[str, Any]]], dict[str, Any]] = count_summary
    # Read the statistics the list endpoint computes instead of summarizing
    server_stats: bool = False

    @property
    def tags(self) -> tuple[str, ...]:
        return (self.name, *self.extra_tags)

    @property
    def stats_tags(self) -> tuple[str, ...]:
        return (*self.tags, STATS_TAG)

    @property
    def stats_key(self) -> str:
        return build_key(self.name, {"scope": STATS_TAG})

    def initial_query(self) -> ResourceQuery:
        filters = {k: v for k, v in self.default_filters().items() if not is_empty(v)}
        return ResourceQuery(
            limit=self.default_limit,
            sort_by=self.default_sort_by,
            sort_order=self.default_sort_order,
            filters=filters,
        )


class ResourceHook:
    """Cached, paginated view over one resource.

    Usage:
        hook = ResourceHook(SETORES, store=store, fetcher=fetcher)
        await hook.load()
        await hook.filter_by("categoria", "Biologia")
        await hook.create({"nome": "Lab 2", "categoria": "Biologia"})
        hook.state.items

    Read triggers (``load`` and the ``handle_*``/``filter_by`` helpers) never
    raise for network failures; they record ``state.error`` and keep the
    items already on screen. Mutations re-raise after recording the error.
    """

    def __init__(
        self,
        definition: ResourceDefinition,
        *,
        store: CacheStore,
        fetcher: Fetcher,
        coalescer: RequestCoalescer | None = None,
    ) -> None:
        self._definition = definition
        self._store = store
        self._fetcher = fetcher
        self._coalescer = coalescer if coalescer is not None else RequestCoalescer()
        self._query = definition.initial_query()
        self._read_seq = 0
        self._stats_seq = 0
        self.state = ResourceState(
            pagination=Pagination(page=self._query.page, limit=self._query.limit)
        )
        self._sync_query_state()
        self._log = logger.bind(component="resource_hook", resource=definition.name)

    @property
    def definition(self) -> ResourceDefinition:
        return self._definition

    @property
    def query(self) -> ResourceQuery:
        return self._query

    @property
    def current_key(self) -> str:
        return build_key(self._definition.name, self._query)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def load(self) -> ResourceState:
        """Read the current query from the cache, or fetch it on a miss."""
        self._read_seq += 1
        seq = self._read_seq
        query = self._query
        key = build_key(self._definition.name, query)

        cached = self._store.get(key)
        if cached is not None:
            self._adopt_page(query, cached)
            self.state.loading = False
            self.state.error = None
            return self.state

        self.state.loading = True
        self.state.error = None
        params = query.to_params()
        try:
            page, fresh = await self._fetch(
                key,
                self._definition.tags,
                lambda: self._fetcher.fetch_page(self._definition.name, params),
            )
        except Exception as e:
            if seq == self._read_seq:
                self.state.error = str(e) or type(e).__name__
                self._log.warning(
                    "resource_fetch_failed", key=key, error=self.state.error
                )
            return self.state
        finally:
            if seq == self._read_seq:
                self.state.loading = False

        if seq != self._read_seq:
            self._log.debug("resource_stale_response", key=key)
            return self.state

        if fresh:
            self._store.set(key, page, self._definition.ttl, self._definition.tags)
        self._adopt_page(query, page)
        return self.state

    async def load_stats(self) -> ResourceState:
        """Read aggregate statistics over every record of the resource."""
        self._stats_seq += 1
        seq = self._stats_seq
        key = self._definition.stats_key

        cached = self._store.get(key)
        if cached is not None:
            self.state.stats = dict(cached)
            return self.state

        async def fetch_stats() -> dict[str, Any]:
            name = self._definition.name
            if self._definition.server_stats:
                page = await self._fetcher.fetch_page(name, dict(STATS_PAGE_PARAMS))
                if page.summary is None:
                    raise FetchError(f"{name} response has no statistics")
                return page.summary
            items = await self._fetcher.fetch_all(name)
            return self._definition.summarize(items)

        try:
            stats, fresh = await self._fetch(
                key, self._definition.stats_tags, fetch_stats
            )
        except Exception as e:
            if seq == self._stats_seq:
                self._log.warning("resource_stats_failed", key=key, error=str(e))
            return self.state

        if seq != self._stats_seq:
            self._log.debug("resource_stale_response", key=key)
            return self.state

        if fresh:
            self._store.set(
                key, stats, self._definition.stats_ttl, self._definition.stats_tags
            )
        self.state.stats = dict(stats)
        return self.state

    async def handle_page_change(self, page: int) -> ResourceState:
        self._query = self._query.with_changes(page=page)
        return await self._reload()

    async def set_limit(self, limit: int) -> ResourceState:
        self._query = self._query.with_changes(limit=limit, page=1)
        return await self._reload()

    async def handle_search(self, term: str) -> ResourceState:
        self._query = self._query.with_changes(search=term, page=1)
        return await self._reload()

    async def handle_sort_change(
        self, sort_by: str, sort_order: SortOrder = "asc"
    ) -> ResourceState:
        self._query = self._query.with_changes(
            sort_by=sort_by, sort_order=sort_order, page=1
        )
        return await self._reload()

    async def filter_by(self, field_name: str, value: Any) -> ResourceState:
        """Set one filter (None or "" clears it) and go back to page 1."""
        return await self.update_filters({field_name: value})

    async def update_filters(self, changes: Mapping[str, Any]) -> ResourceState:
        for name in changes:
            if name not in self._definition.filter_fields:
                raise UnknownFilterError(self._definition.name, name)

        filters = dict(self._query.filters)
        for name, value in changes.items():
            if is_empty(value):
                filters.pop(name, None)
            else:
                filters[name] = value
        self._query = self._query.with_changes(filters=filters, page=1)
        return await self._reload()

    async def clear_filters(self) -> ResourceState:
        """Back to the default page, sort and filters, with no search term."""
        self._query = self._definition.initial_query()
        return await self._reload()

    async def refresh(self) -> ResourceState:
        """Drop every cached entry of the resource and read again."""
        self._store.invalidate_by_tag(self._definition.name)
        await self._reload_all()
        return self.state

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._mutate(
            "create", lambda: self._fetcher.create(self._definition.name, data)
        )

    async def update(self, item_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._mutate(
            "update",
            lambda: self._fetcher.update(self._definition.name, item_id, data),
        )

    async def delete(self, item_id: str) -> None:
        await self._mutate(
            "delete", lambda: self._fetcher.delete(self._definition.name, item_id)
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _fetch(
        self,
        key: str,
        tags: tuple[str, ...],
        fetch: Callable[[], Awaitable[T]],
    ) -> tuple[T, bool]:
        """Run ``fetch`` through the coalescer.

        Returns the value and whether it may be written to the store, which
        is not the case when one of ``tags`` was invalidated meanwhile.
        """
        generation = self._store.tag_generation(tags)
        # Reads issued after an invalidation must not join one issued before it
        flight_key = f"{key}#{'.'.join(map(str, generation))}"
        value = await self._coalescer.run(flight_key, fetch)
        return value, self._store.tag_generation(tags) == generation

    async def _mutate(self, action: str, call: Callable[[], Awaitable[T]]) -> T:
        self.state.loading = True
        self.state.error = None
        try:
            result = await call()
        except Exception as e:
            self.state.error = str(e) or type(e).__name__
            self.state.loading = False
            self._log.warning(
                "resource_mutation_failed", action=action, error=self.state.error
            )
            raise

        self._store.invalidate_by_tag(self._definition.name)
        await self._reload_all()
        return result

    async def _reload(self) -> ResourceState:
        self._sync_query_state()
        return await self.load()

    async def _reload_all(self) -> None:
        if self.state.stats is None:
            await self.load()
        else:
            await asyncio.gather(self.load(), self.load_stats())

    def _adopt_page(self, query: ResourceQuery, page: Page) -> None:
        self.state.items = list(page.items)
        self.state.pagination = Pagination(
            page=query.page,
            limit=query.limit,
            total=page.total,
            total_pages=page.total_pages,
        )

    def _sync_query_state(self) -> None:
        """Mirror the query into the UI state.

        Pagination describes the loaded items, so it only moves with them in
        ``_adopt_page``.
        """
        query = self._query
        self.state.filters = dict(query.filters)
        self.state.search_term = query.search
        self.state.sort_by = query.sort_by
        self.state.sort_order = query.sort_order
