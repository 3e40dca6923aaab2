"""nextar_cache - tagged TTL cache and resource hooks for the maintenance dashboard."""

from nextar_cache.coalesce import RequestCoalescer
from nextar_cache.config import CacheSettings, create_hooks

# Duration parsing
from nextar_cache.duration import parse_duration
from nextar_cache.errors import (
    FetchError,
    InvalidTTLError,
    NextarCacheError,
    UnknownFilterError,
)
from nextar_cache.fetcher import Fetcher, HttpFetcher
from nextar_cache.keys import build_key
from nextar_cache.query import ResourceQuery
from nextar_cache.resource import ResourceDefinition, ResourceHook
from nextar_cache.resources import (
    ALL_RESOURCES,
    CHAMADOS,
    EQUIPAMENTOS,
    HISTORICO,
    SETORES,
    USERS,
)
from nextar_cache.store import CacheStore

# Core types
from nextar_cache.types import (
    CacheEntry,
    CacheStats,
    Duration,
    Page,
    Pagination,
    ResourceState,
)

__version__ = "0.1.0"

__all__ = [
    "ALL_RESOURCES",
    "CHAMADOS",
    "EQUIPAMENTOS",
    "HISTORICO",
    "SETORES",
    "USERS",
    "CacheEntry",
    "CacheSettings",
    "CacheStats",
    "CacheStore",
    "Duration",
    "FetchError",
    "Fetcher",
    "HttpFetcher",
    "InvalidTTLError",
    "NextarCacheError",
    "Page",
    "Pagination",
    "RequestCoalescer",
    "ResourceDefinition",
    "ResourceHook",
    "ResourceQuery",
    "ResourceState",
    "UnknownFilterError",
    "build_key",
    "create_hooks",
    "parse_duration",
]
