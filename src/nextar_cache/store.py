"""In-memory cache store with TTL expiry and tag-based invalidation.

The store is synchronous: every operation runs to completion without
awaiting, so on a single event loop no two operations can interleave and no
locking is needed. Expiry is lazy. An expired entry stays in memory until a
read touches it or :meth:`CacheStore.purge_expired` is called.
"""

import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

import structlog

from nextar_cache.duration import parse_duration
from nextar_cache.errors import InvalidTTLError
from nextar_cache.types import CacheEntry, CacheStats, Duration

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class CacheStore:
    """Keyed store with TTL expiry and a tag -> keys secondary index.

    Create one per process and pass it to every resource hook::

        store = CacheStore(default_ttl="5m", max_entries=1000)
        store.set("setores?page=1", page, "5m", ["setores"])
        store.invalidate_by_tag("setores")
    """

    def __init__(
        self,
        *,
        default_ttl: Duration = "5m",
        max_entries: int | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive or None")
        self._default_ttl = self._validate_ttl(default_ttl)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._tags: dict[str, set[str]] = {}
        # Bumped on every invalidation so in-flight fetches can detect it
        self._tag_versions: dict[str, int] = {}
        self._epoch = 0
        self._hits = 0
        self._misses = 0
        self._log = logger.bind(component="cache_store")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def get(self, key: str) -> Any | None:
        """Return the live value at ``key`` or None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            self._log.debug("cache_miss", key=key)
            return None

        if entry.is_expired(self._clock()):
            self._remove(key)
            self._misses += 1
            self._log.debug("cache_expired", key=key)
            return None

        self._hits += 1
        self._log.debug("cache_hit", key=key)
        return entry.value

    def has(self, key: str) -> bool:
        """Check for a live entry without counting a hit or miss."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            self._remove(key)
            return False
        return True

    def set(
        self,
        key: str,
        value: T,
        ttl: Duration | None = None,
        tags: Iterable[str] = (),
    ) -> None:
        """Store ``value`` at ``key``, replacing any previous entry and its tags."""
        ttl_ms = self._validate_ttl(ttl) if ttl is not None else self._default_ttl
        now = self._clock()

        if key in self._entries:
            self._remove(key)
        elif self._max_entries is not None:
            while len(self._entries) >= self._max_entries:
                oldest = next(iter(self._entries))
                self._remove(oldest)
                self._log.debug("cache_evicted", key=oldest)

        entry: CacheEntry[object] = CacheEntry(
            key=key,
            value=value,
            expires_at=now + ttl_ms,
            tags=frozenset(tags),
            created_at=now,
        )
        self._entries[key] = entry
        for tag in entry.tags:
            self._tags.setdefault(tag, set()).add(key)

        self._log.debug("cache_set", key=key, ttl_ms=ttl_ms, tags=sorted(entry.tags))

    def invalidate_by_tag(self, tag: str) -> None:
        """Remove every entry carrying ``tag``. Unknown tags are a no-op."""
        self._tag_versions[tag] = self._tag_versions.get(tag, 0) + 1
        keys = self._tags.get(tag)
        if not keys:
            return

        # _remove mutates the index set we are iterating over
        removed = list(keys)
        for key in removed:
            self._remove(key)
        self._log.info("cache_invalidated", tag=tag, entries=len(removed))

    def invalidate_by_key(self, key: str) -> None:
        """Remove one entry and its tag associations."""
        if key in self._entries:
            self._remove(key)
            self._log.debug("cache_invalidated", key=key)

    def purge_expired(self) -> int:
        """Drop every expired entry now. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            self._remove(key)
        if expired:
            self._log.debug("cache_purged", entries=len(expired))
        return len(expired)

    def clear(self) -> None:
        """Empty the store and reset its counters.

        Meant for teardown and tests, not for UI code paths.
        """
        count = len(self._entries)
        self._entries.clear()
        self._tags.clear()
        self._epoch += 1
        self._hits = 0
        self._misses = 0
        self._log.info("cache_cleared", entries_cleared=count)

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), hits=self._hits, misses=self._misses)

    def tags_for(self, key: str) -> frozenset[str]:
        entry = self._entries.get(key)
        return entry.tags if entry is not None else frozenset()

    def keys_for(self, tag: str) -> frozenset[str]:
        return frozenset(self._tags.get(tag, ()))

    def tag_generation(self, tags: Iterable[str]) -> tuple[int, ...]:
        """Invalidation marker for ``tags``.

        The marker changes whenever any of the tags is invalidated or the
        store is cleared. A fetch that started under one marker must not be
        written back once the marker has moved on, or it would restore data
        from before the invalidation.
        """
        return (self._epoch, *(self._tag_versions.get(t, 0) for t in sorted(set(tags))))

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _remove(self, key: str) -> None:
        """Drop ``key`` from the primary map and from every tag it carries."""
        entry = self._entries.pop(key)
        for tag in entry.tags:
            keys = self._tags.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tags[tag]

    @staticmethod
    def _validate_ttl(ttl: Duration) -> int:
        ttl_ms = parse_duration(ttl)
        if ttl_ms <= 0:
            raise InvalidTTLError(f"TTL must be positive, got {ttl!r}")
        return ttl_ms
