"""Environment-driven settings for the process-wide cache."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from nextar_cache.coalesce import RequestCoalescer
from nextar_cache.duration import parse_duration
from nextar_cache.fetcher import Fetcher, HttpFetcher
from nextar_cache.resource import ResourceDefinition, ResourceHook
from nextar_cache.store import CacheStore

DEFAULT_TTL_MS = 300_000
DEFAULT_MAX_ENTRIES = 1000
DEFAULT_API_URL = "http://localhost:3000"


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """Settings for the store and the HTTP fetcher.

    Build once at startup and create the shared objects from it::

        settings = CacheSettings.from_env()
        store = settings.create_store()
        fetcher = settings.create_fetcher()
    """

    default_ttl: int = DEFAULT_TTL_MS
    max_entries: int | None = DEFAULT_MAX_ENTRIES
    api_base_url: str = DEFAULT_API_URL
    api_token: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CacheSettings:
        """Read ``CACHE_DEFAULT_TTL``, ``CACHE_MAX_ENTRIES``, ``NEXTAR_API_URL``
        and ``NEXTAR_API_TOKEN``. ``CACHE_MAX_ENTRIES=0`` disables the limit.
        """
        env = os.environ if environ is None else environ

        ttl = parse_duration(env.get("CACHE_DEFAULT_TTL") or DEFAULT_TTL_MS)
        if ttl <= 0:
            raise ValueError(f"CACHE_DEFAULT_TTL must be positive, got {ttl}")

        raw_max = env.get("CACHE_MAX_ENTRIES")
        try:
            max_entries = int(raw_max) if raw_max else DEFAULT_MAX_ENTRIES
        except ValueError:
            raise ValueError(
                f"CACHE_MAX_ENTRIES must be an integer, got {raw_max!r}"
            ) from None
        if max_entries < 0:
            raise ValueError(
                f"CACHE_MAX_ENTRIES must not be negative, got {max_entries}"
            )

        return cls(
            default_ttl=ttl,
            max_entries=max_entries or None,
            api_base_url=env.get("NEXTAR_API_URL") or DEFAULT_API_URL,
            api_token=env.get("NEXTAR_API_TOKEN") or None,
        )

    def create_store(self) -> CacheStore:
        return CacheStore(default_ttl=self.default_ttl, max_entries=self.max_entries)

    def create_fetcher(self) -> HttpFetcher:
        return HttpFetcher(self.api_base_url, token=self.api_token)


def create_hooks(
    definitions: Mapping[str, ResourceDefinition],
    *,
    store: CacheStore,
    fetcher: Fetcher,
) -> dict[str, ResourceHook]:
    """One hook per resource, all sharing the store and a single coalescer."""
    coalescer = RequestCoalescer()
    return {
        name: ResourceHook(
            definition, store=store, fetcher=fetcher, coalescer=coalescer
        )
        for name, definition in definitions.items()
    }
