"""
HTTP client for the remote data service (see cafe_sync.main).

Rows cross this boundary as snake_case dicts with ISO-8601 timestamps;
mapping them to domain models is the caller's job.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from cafe_sync.errors import RemoteError, RemoteUnavailableError, WriteRejectedError

logger = logging.getLogger(__name__)


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


def _json(response: httpx.Response, what: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise RemoteError(f"{what} returned a non-JSON body: {response.text[:80]!r}") from e


class RemoteDataService:
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise RemoteUnavailableError(f"{method} {self.base_url}{url} failed: {e}") from e

    async def fetch_all(self, table: str) -> List[Dict[str, Any]]:
        response = await self._request("GET", f"/{table}/")
        if response.status_code != 200:
            raise RemoteError(f"fetching {table} returned {response.status_code}: {_detail(response)}")
        rows = _json(response, f"fetching {table}")
        if not isinstance(rows, list):
            raise RemoteError(f"fetching {table} returned a {type(rows).__name__}, expected a list")
        return [row for row in rows if isinstance(row, dict)]

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", f"/{table}/", json=row)
        if not response.is_success:
            raise WriteRejectedError(response.status_code, _detail(response))
        created = _json(response, f"inserting into {table}")
        return created if isinstance(created, dict) else {}

    async def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("PATCH", f"/{table}/{row_id}", json=patch)
        if not response.is_success:
            raise WriteRejectedError(response.status_code, _detail(response))
        updated = _json(response, f"updating {table}/{row_id}")
        return updated if isinstance(updated, dict) else {}

    async def delete(self, table: str, row_id: str) -> None:
        response = await self._request("DELETE", f"/{table}/{row_id}")
        if not response.is_success:
            raise WriteRejectedError(response.status_code, _detail(response))

    async def aclose(self) -> None:
        await self._client.aclose()
