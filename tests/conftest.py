import asyncio
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import cafe_sync.models  # noqa: F401
from cafe_sync.db.base import Base
from cafe_sync.db.session import get_async_session
from cafe_sync.domain import MenuItem, OrderItem
from cafe_sync.enums import MenuCategoryEnum
from cafe_sync.errors import ChannelError, RemoteUnavailableError, WriteRejectedError
from cafe_sync.main import app
from cafe_sync.realtime.publisher import EventPublisher, get_publisher

T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FakeRemote:
    """In-memory stand-in for RemoteDataService, keyed by table name."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"orders": [], "menu_items": [], "users": []}
        self.calls: List[tuple] = []
        self.unavailable = False
        self.reject_writes = False
        self.assign_ids = False
        self.closed = False

    def _check(self, write: bool = False):
        if self.unavailable:
            raise RemoteUnavailableError("connection refused")
        if write and self.reject_writes:
            raise WriteRejectedError(500, "boom")

    def _find(self, table, row_id):
        return next((r for r in self.tables[table] if r.get("id") == row_id), None)

    async def fetch_all(self, table: str):
        self.calls.append(("fetch_all", table))
        self._check()
        return [dict(r) for r in self.tables[table]]

    async def insert(self, table: str, row: Dict[str, Any]):
        self.calls.append(("insert", table, row))
        self._check(write=True)
        stored = dict(row)
        if self.assign_ids or not stored.get("id"):
            stored["id"] = f"srv-{len(self.tables[table]) + 1}"
        self.tables[table].insert(0, stored)
        return dict(stored)

    async def update(self, table: str, row_id: str, patch: Dict[str, Any]):
        self.calls.append(("update", table, row_id, patch))
        self._check(write=True)
        row = self._find(table, row_id)
        if row is None:
            raise WriteRejectedError(404, "not found")
        row.update(patch)
        return dict(row)

    async def delete(self, table: str, row_id: str):
        self.calls.append(("delete", table, row_id))
        self._check(write=True)
        row = self._find(table, row_id)
        if row is None:
            raise WriteRejectedError(404, "not found")
        self.tables[table].remove(row)

    async def aclose(self):
        self.closed = True


class FakeChannel:
    """Push channel fed by hand: put PushEvents, a ChannelError to drop, None to end."""

    def __init__(self):
        self.opens = 0
        self.closes = 0
        self.fail_open = False
        self.is_open = False
        self.queue: asyncio.Queue = asyncio.Queue()

    async def open(self, tables):
        self.opens += 1
        if self.fail_open:
            raise ChannelError("redis down")
        self.tables = tuple(tables)
        self.is_open = True

    async def listen(self):
        while True:
            item = await self.queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self):
        self.closes += 1
        self.is_open = False


class RecordingPublisher(EventPublisher):
    def __init__(self):
        super().__init__(url="", enabled=False)
        self.events = []

    async def publish(self, table, event_type, new=None, old=None):
        event = await super().publish(table, event_type, new=new, old=old)
        self.events.append(event)
        return event


async def wait_for(condition, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def nasi():
    return MenuItem(id="m1", name="Nasi Goreng", price=15000, category=MenuCategoryEnum.main_course)


@pytest.fixture
def teh():
    return MenuItem(id="m2", name="Es Teh", price=5000, category=MenuCategoryEnum.cold_drink)


@pytest.fixture
def nasi_line(nasi):
    return OrderItem(id="l1", menu_item=nasi, quantity=2)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def client(tmp_path, publisher):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_publisher] = lambda: publisher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())
