import asyncio
import json

import httpx
import pytest

from cafe_sync.errors import RemoteError, RemoteUnavailableError, WriteRejectedError
from cafe_sync.sync.remote import RemoteDataService


def make_remote(handler, api_key="secret"):
    return RemoteDataService("http://remote/", api_key=api_key, transport=httpx.MockTransport(handler))


def test_fetch_all_sends_key_and_filters_rows():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers.get("apikey")
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=[{"id": "o1"}, "junk", {"id": "o2"}])

    async def run():
        remote = make_remote(handler)
        try:
            return await remote.fetch_all("orders")
        finally:
            await remote.aclose()

    rows = asyncio.run(run())
    assert rows == [{"id": "o1"}, {"id": "o2"}]
    assert seen == {"url": "http://remote/orders/", "apikey": "secret", "auth": "Bearer secret"}


def test_fetch_all_error_status():
    async def run():
        remote = make_remote(lambda request: httpx.Response(500, json={"detail": "db down"}))
        await remote.fetch_all("orders")

    with pytest.raises(RemoteError, match="db down"):
        asyncio.run(run())


def test_transport_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        await make_remote(handler).insert("orders", {"id": "o1"})

    with pytest.raises(RemoteUnavailableError):
        asyncio.run(run())


def test_writes_use_rest_verbs():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        calls.append((request.method, request.url.path, body))
        if request.method == "POST":
            return httpx.Response(201, json={**body, "id": "srv-1"})
        if request.method == "PATCH":
            return httpx.Response(200, json={"id": "srv-1", **body})
        return httpx.Response(204)

    async def run():
        remote = make_remote(handler, api_key="")
        created = await remote.insert("orders", {"table_number": "A1"})
        updated = await remote.update("orders", "srv-1", {"status": "COOKING"})
        await remote.delete("orders", "srv-1")
        return created, updated

    created, updated = asyncio.run(run())
    assert created["id"] == "srv-1"
    assert updated["status"] == "COOKING"
    assert calls == [
        ("POST", "/orders/", {"table_number": "A1"}),
        ("PATCH", "/orders/srv-1", {"status": "COOKING"}),
        ("DELETE", "/orders/srv-1", None),
    ]


def test_rejected_write_carries_status():
    async def run():
        await make_remote(lambda request: httpx.Response(409, json={"detail": "only new orders"})).delete("orders", "x")

    with pytest.raises(WriteRejectedError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == "only new orders"


def test_non_json_reply_is_a_remote_error():
    def handler(request):
        return httpx.Response(200, text="<html>proxy</html>", headers={"content-type": "text/html"})

    async def fetch():
        await make_remote(handler).fetch_all("orders")

    async def insert():
        await make_remote(handler).insert("orders", {"id": "o1"})

    with pytest.raises(RemoteError, match="non-JSON"):
        asyncio.run(fetch())
    with pytest.raises(RemoteError, match="non-JSON"):
        asyncio.run(insert())
