"""Deterministic cache keys for resource queries."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

if TYPE_CHECKING:
    from nextar_cache.query import ResourceQuery


def is_empty(value: Any) -> bool:
    """True for values that mean "no filter": None, "" and empty lists.

    Whitespace is a value: ``" "`` is kept.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return all(is_empty(v) for v in value)
    return False


def canonical_value(value: Any) -> str:
    """Serialize a query value so that ``10``, ``10.0`` and ``"10"`` agree."""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(_list_item(v) for v in value if not is_empty(v)))
    if isinstance(value, (list, tuple)):
        return ",".join(_list_item(v) for v in value if not is_empty(v))
    return str(value)


def _list_item(value: Any) -> str:
    # Escape the separator so ["a,b"] and ["a", "b"] stay distinct
    return canonical_value(value).replace("%", "%25").replace(",", "%2C")


def normalize_params(query: Mapping[str, Any]) -> dict[str, str]:
    """Drop empty fields and canonicalize the rest, sorted by field name."""
    return {
        name: canonical_value(query[name])
        for name in sorted(query)
        if not is_empty(query[name])
    }


def build_key(resource: str, query: Mapping[str, Any] | ResourceQuery) -> str:
    """Build the cache key for ``resource`` under ``query``.

    Two queries that agree on every non-empty field give the same key,
    whatever the insertion order of their fields::

        >>> build_key("setores", {"page": 1, "search": "", "limit": 10})
        'setores?limit=10&page=1'
    """
    if not resource:
        raise ValueError("resource name must not be empty")

    if isinstance(query, Mapping):
        params = normalize_params(query)
    else:
        params = query.to_params()

    if not params:
        return resource
    return f"{resource}?{urlencode(params)}"
