"""Shared pytest fixtures."""

import asyncio
import math
from typing import Any

import pytest

from nextar_cache import CacheStore, FetchError, Page


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeFetcher:
    """In-memory stand-in for the REST API.

    Records live in ``records[resource]``. A read for page N waits on
    ``gates[N]`` when one is set, so tests can control resolution order.
    """

    def __init__(self) -> None:
        self.records: dict[str, list[dict[str, Any]]] = {}
        self.gates: dict[int, asyncio.Event] = {}
        self.page_calls: list[tuple[str, dict[str, str]]] = []
        self.all_calls: list[str] = []
        self.mutations: list[tuple[str, str]] = []
        self.fail_reads: Exception | None = None
        self.fail_mutations: Exception | None = None
        # Statistics sent along with every page, per resource
        self.summaries: dict[str, dict[str, Any]] = {}
        self._next_id = 1

    def seed(self, resource: str, count: int, **fields: Any) -> None:
        for _ in range(count):
            self._insert(resource, dict(fields))

    def _insert(self, resource: str, data: dict[str, Any]) -> dict[str, Any]:
        record = {"id": str(self._next_id), "nome": f"item-{self._next_id}", **data}
        self._next_id += 1
        self.records.setdefault(resource, []).append(record)
        return record

    async def fetch_page(self, resource: str, params: dict[str, str]) -> Page:
        self.page_calls.append((resource, dict(params)))
        page = int(params.get("page", "1"))
        limit = int(params.get("limit", "10"))
        gate = self.gates.get(page)
        if gate is not None:
            await gate.wait()
        if self.fail_reads is not None:
            raise self.fail_reads

        records = self.records.get(resource, [])
        start = (page - 1) * limit
        return Page(
            items=[dict(r) for r in records[start : start + limit]],
            total=len(records),
            total_pages=math.ceil(len(records) / limit) if records else 0,
            summary=self.summaries.get(resource),
        )

    async def fetch_all(self, resource: str) -> list[dict[str, Any]]:
        self.all_calls.append(resource)
        if self.fail_reads is not None:
            raise self.fail_reads
        return [dict(r) for r in self.records.get(resource, [])]

    async def create(self, resource: str, data: dict[str, Any]) -> dict[str, Any]:
        self.mutations.append(("create", resource))
        if self.fail_mutations is not None:
            raise self.fail_mutations
        return self._insert(resource, data)

    async def update(
        self, resource: str, item_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        self.mutations.append(("update", resource))
        if self.fail_mutations is not None:
            raise self.fail_mutations
        for record in self.records.get(resource, []):
            if record["id"] == item_id:
                record.update(data)
                return dict(record)
        raise FetchError("not found", 404)

    async def delete(self, resource: str, item_id: str) -> None:
        self.mutations.append(("delete", resource))
        if self.fail_mutations is not None:
            raise self.fail_mutations
        self.records[resource] = [
            r for r in self.records.get(resource, []) if r["id"] != item_id
        ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    """Create a fresh CacheStore on a fake clock for each test."""
    return CacheStore(default_ttl="5m", clock=clock)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()
