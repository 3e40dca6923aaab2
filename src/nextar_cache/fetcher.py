"""Network collaborator for the dashboard REST API."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from nextar_cache.errors import FetchError
from nextar_cache.types import Page


@runtime_checkable
class Fetcher(Protocol):
    """Async access to one REST collection per resource name."""

    async def fetch_page(self, resource: str, params: dict[str, str]) -> Page:
        """Fetch one page of ``resource`` matching ``params``."""
        ...

    async def fetch_all(self, resource: str) -> list[dict[str, Any]]:
        """Fetch every record of ``resource`` (used for statistics)."""
        ...

    async def create(self, resource: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a record and return it as stored by the server."""
        ...

    async def update(
        self, resource: str, item_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Update a record and return it as stored by the server."""
        ...

    async def delete(self, resource: str, item_id: str) -> None:
        """Delete a record."""
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


class HttpFetcher:
    """Fetcher backed by ``httpx.AsyncClient`` against ``/api/<resource>``."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> HttpFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None if empty)."""
        try:
            response = await self._client.request(
                method, path, params=params, json=body
            )
        except httpx.HTTPError as e:
            raise FetchError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            raise FetchError(_error_message(response), response.status_code)
        if not response.content:
            return None
        return response.json()

    async def fetch_page(self, resource: str, params: dict[str, str]) -> Page:
        result = await self._request("GET", f"/api/{resource}", params=params)
        result = result or {}
        pagination = result.get("pagination") or {}
        return Page(
            items=list(result.get("data") or []),
            total=int(pagination.get("total", 0)),
            total_pages=int(pagination.get("totalPages", 0)),
            summary=result.get("estatisticas"),
        )

    async def fetch_all(self, resource: str) -> list[dict[str, Any]]:
        result = await self._request("GET", f"/api/{resource}", params={"all": "true"})
        # The API answers either {"data": [...]} or a bare list
        if isinstance(result, dict):
            return list(result.get("data") or [])
        return list(result or [])

    async def create(self, resource: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/api/{resource}", body=data)

    async def update(
        self, resource: str, item_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._request("PUT", f"/api/{resource}/{item_id}", body=data)

    async def delete(self, resource: str, item_id: str) -> None:
        await self._request("DELETE", f"/api/{resource}/{item_id}")

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
