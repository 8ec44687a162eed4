"""
Synchronization engine of one terminal.

The engine owns the LocalStateStore. User actions are applied to the
store first (listeners see them before any network I/O), then written to
the remote data service. Push events patch the store; reconciliation
re-fetches everything and wins over local state, except for orders this
terminal created that the remote store has not confirmed yet.

Without a remote data service the engine runs offline on a local
snapshot file, written after every mutation.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import uuid4

from cafe_sync.clock import now_ms
from cafe_sync.config import Settings, settings
from cafe_sync.domain import MenuItem, Order, OrderItem, User
from cafe_sync.domain import lifecycle
from cafe_sync.domain.coerce import as_str
from cafe_sync.enums import OrderStatusEnum, PaymentMethodEnum
from cafe_sync.errors import (
    ChannelError,
    MenuItemNotFoundError,
    OrderNotFoundError,
    RemoteError,
    UserNotFoundError,
)
from cafe_sync.realtime.channel import RedisPushChannel
from cafe_sync.realtime.events import MENU_ITEMS, ORDERS, SYNCED_TABLES, USERS, PushEvent
from cafe_sync.sync.persistence import SnapshotData, SnapshotFile
from cafe_sync.sync.remote import RemoteDataService
from cafe_sync.sync.seed import INITIAL_MENU_ITEMS, INITIAL_USERS
from cafe_sync.sync.store import Listener, LocalStateStore, StoreSnapshot

logger = logging.getLogger(__name__)


def new_order_id() -> str:
    return f"ORD-{uuid4().hex[:12]}"


class SyncEngine:
    def __init__(
        self,
        remote: Optional[RemoteDataService] = None,
        channel: Optional[RedisPushChannel] = None,
        snapshot_file: Optional[SnapshotFile] = None,
        store: Optional[LocalStateStore] = None,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_order_id,
        reconcile_interval: float = settings.RECONCILE_INTERVAL,
        refetch_on_push: bool = settings.REFETCH_ON_PUSH,
    ):
        self.store = store or LocalStateStore()
        self.remote = remote
        self.channel = channel
        self.snapshot_file = snapshot_file
        self.clock = clock
        self.id_factory = id_factory
        self.reconcile_interval = reconcile_interval
        self.refetch_on_push = refetch_on_push
        # local order id -> future resolved with the stored id (None when rolled back)
        self._pending_creates: Dict[str, asyncio.Future] = {}
        self._subscription: Optional[asyncio.Task] = None
        self._subscribed = asyncio.Event()
        self._reconcile_task: Optional[asyncio.Task] = None
        self._closing = False

    # read access

    @property
    def snapshot(self) -> StoreSnapshot:
        return self.store.snapshot

    @property
    def is_connected(self) -> bool:
        return self.store.snapshot.connected

    @property
    def is_online(self) -> bool:
        return self.remote is not None

    @property
    def pending_order_ids(self) -> frozenset:
        return frozenset(self._pending_creates)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # startup / teardown

    async def start(self) -> None:
        self._closing = False
        await self.bootstrap()
        if self.remote is None:
            return
        await self.connect()
        if self.reconcile_interval > 0 and self._reconcile_task is None:
            self._reconcile_task = asyncio.create_task(self._reconcile_loop())

    async def close(self) -> None:
        self._closing = True
        task, self._reconcile_task = self._reconcile_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.disconnect()
        if self.remote is not None:
            await self.remote.aclose()

    async def __aenter__(self) -> "SyncEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # bulk loading

    async def bootstrap(self) -> None:
        if self.remote is None:
            logger.info("no remote data service configured, running offline")
            self._load_offline()
            return
        try:
            orders, menu_items, users = await self._fetch_remote()
        except RemoteError as e:
            logger.warning("remote data service unreachable, using the local snapshot: %s", e)
            self._load_offline()
            return
        self.store.replace(
            orders=orders,
            menu_items=menu_items or INITIAL_MENU_ITEMS,
            users=users or INITIAL_USERS,
            last_updated=self.clock(),
        )
        logger.info("bootstrapped %d orders, %d menu items, %d users", len(orders), len(menu_items), len(users))

    def _load_offline(self) -> None:
        data = self.snapshot_file.load() if self.snapshot_file is not None else SnapshotData()
        self.store.replace(
            orders=data.orders if data.orders is not None else (),
            menu_items=data.menu_items if data.menu_items is not None else INITIAL_MENU_ITEMS,
            users=data.users if data.users is not None else INITIAL_USERS,
        )

    async def _fetch_remote(self) -> Tuple[List[Order], List[MenuItem], List[User]]:
        results = await asyncio.gather(
            self.remote.fetch_all(ORDERS),
            self.remote.fetch_all(MENU_ITEMS),
            self.remote.fetch_all(USERS),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        order_rows, menu_rows, user_rows = results
        orders = [o for o in (Order.from_row(r) for r in order_rows) if o.id]
        menu_items = [m for m in (MenuItem.from_row(r) for r in menu_rows) if m.id]
        users = [u for u in (User.from_row(r) for r in user_rows) if u.id]
        return orders, menu_items, users

    async def reconcile(self) -> bool:
        """
        Re-fetches every collection and replaces the cached state with it.
        Returns True when the store changed. Failures are logged, never raised.
        """
        if self.remote is None:
            return False
        try:
            orders, menu_items, users = await self._fetch_remote()
        except RemoteError as e:
            logger.warning("reconciliation skipped: %s", e)
            return False

        fetched_ids = {o.id for o in orders}
        unconfirmed = [
            o for o in self.store.snapshot.orders
            if o.id in self._pending_creates and o.id not in fetched_ids
        ]
        changed = self.store.replace(
            orders=unconfirmed + orders,
            menu_items=menu_items or None,
            users=users or None,
            last_updated=self.clock(),
        )
        if changed:
            logger.info("reconciliation updated the local state")
        return changed

    async def _reconcile_loop(self) -> None:
        while True:
            await asyncio.sleep(self.reconcile_interval)
            try:
                await self.reconcile()
            except Exception:
                logger.exception("reconciliation pass failed")

    # push channel

    async def connect(self) -> bool:
        """
        Subscribes to the push channel unless a subscription is already
        pending or active. Returns the resulting connectivity.
        """
        if self.channel is None or self._closing:
            return False
        if self._subscription is None:
            self._subscribed = asyncio.Event()
            self._subscription = asyncio.create_task(self._run_subscription(self._subscribed))
        await self._subscribed.wait()
        return self.is_connected

    async def disconnect(self) -> None:
        task, self._subscription = self._subscription, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self.channel is not None:
            await self.channel.close()
        self.store.set_connected(False)

    async def _run_subscription(self, subscribed: asyncio.Event) -> None:
        # one subscribe per connect(), then one re-subscribe per drop
        resubscribing = False
        try:
            while not self._closing:
                try:
                    await self.channel.open(SYNCED_TABLES)
                except ChannelError as e:
                    logger.warning("push channel unavailable: %s", e)
                    return
                self.store.set_connected(True)
                subscribed.set()
                if resubscribing:
                    logger.info("push channel re-subscribed, reconciling missed events")
                    await self.reconcile()
                try:
                    async for event in self.channel.listen():
                        try:
                            await self.handle_event(event)
                        except Exception:
                            logger.exception("cannot apply %s event on %s", event.type, event.table)
                    logger.warning("push channel closed")
                except ChannelError as e:
                    logger.warning("push channel lost: %s", e)
                finally:
                    self.store.set_connected(False)
                    await self.channel.close()
                resubscribing = True
        finally:
            subscribed.set()
            if self._subscription is asyncio.current_task():
                self._subscription = None

    async def handle_event(self, event: PushEvent) -> bool:
        if self.refetch_on_push:
            return await self.reconcile()
        return self.apply_event(event)

    def apply_event(self, event: PushEvent) -> bool:
        """Patches the single row an event is about. Replaying an event changes nothing."""
        if event.table == ORDERS:
            if event.type == "DELETE":
                changed = self.store.remove_order(event.row_id) is not None
            else:
                order = Order.from_row(event.new or {})
                if not order.id:
                    logger.debug("ignoring %s event without an order id", event.type)
                    return False
                changed = self.store.upsert_order(order)
        elif event.table == MENU_ITEMS:
            if event.type == "DELETE":
                changed = self.store.remove_menu_item(event.row_id) is not None
            else:
                menu_item = MenuItem.from_row(event.new or {})
                changed = bool(menu_item.id) and self.store.upsert_menu_item(menu_item)
        elif event.table == USERS:
            if event.type == "DELETE":
                changed = self.store.remove_user(event.row_id) is not None
            else:
                user = User.from_row(event.new or {})
                changed = bool(user.id) and self.store.upsert_user(user)
        else:
            logger.debug("ignoring event for unknown table %r", event.table)
            return False
        if changed:
            self.store.touch(self.clock())
        return changed

    # order actions

    def _require_order(self, order_id: str) -> Order:
        order = self.store.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return order

    def _persist(self) -> None:
        if self.snapshot_file is None:
            return
        state = self.store.snapshot
        try:
            self.snapshot_file.save(state.orders, state.menu_items, state.users)
        except OSError as e:
            logger.error("cannot write local snapshot %s: %s", self.snapshot_file.path, e)

    async def create_order(
        self,
        table_number: str,
        items: Iterable[OrderItem],
        waiter_id: str,
        notes: str = "",
    ) -> Order:
        """
        Shows the order locally right away, then inserts it remotely.
        If the insert fails the order is taken back out and the error re-raised.
        """
        order = lifecycle.new_order(self.id_factory(), table_number, list(items), waiter_id, self.clock(), notes)
        self.store.upsert_order(order)
        if self.remote is None:
            self._persist()
            return order

        confirmed = asyncio.get_running_loop().create_future()
        self._pending_creates[order.id] = confirmed
        remote_id = None
        try:
            row = await self.remote.insert(ORDERS, order.to_row())
            remote_id = as_str(row.get("id")) or order.id
        except RemoteError as e:
            self.store.remove_order(order.id)
            logger.warning("order %s rolled back, remote insert failed: %s", order.id, e)
            raise
        finally:
            del self._pending_creates[order.id]
            confirmed.set_result(remote_id)

        if remote_id != order.id:
            order = self.store.rename_order(order.id, remote_id) or order.model_copy(update={"id": remote_id})
        return order

    async def update_order_status(
        self,
        order_id: str,
        status: Union[OrderStatusEnum, str],
        payment_method: Union[PaymentMethodEnum, str, None] = None,
    ) -> Order:
        """
        Moves an order to its next state. A failed remote write leaves the
        local change in place and re-raises, the operator retries by hand.
        """
        order = self._require_order(order_id)
        method = PaymentMethodEnum(payment_method) if payment_method is not None else None
        updated = lifecycle.transition(order, OrderStatusEnum(status), self.clock(), method)
        self.store.upsert_order(updated)
        if self.remote is None:
            self._persist()
            return updated
        try:
            await self.remote.update(ORDERS, order_id, lifecycle.transition_patch(updated))
        except RemoteError as e:
            logger.warning("order %s is %s locally but the remote write failed: %s", order_id, updated.status.value, e)
            raise
        return updated

    async def update_order_items(
        self,
        order_id: str,
        items: Iterable[OrderItem],
        notes: Optional[str] = None,
        table_number: Optional[str] = None,
    ) -> Order:
        order = self._require_order(order_id)
        updated = lifecycle.edit_items(order, list(items), notes=notes, table_number=table_number)
        self.store.upsert_order(updated)
        if self.remote is None:
            self._persist()
            return updated
        try:
            await self.remote.update(ORDERS, order_id, lifecycle.edit_patch(updated))
        except RemoteError as e:
            logger.warning("edit of order %s kept locally, remote write failed: %s", order_id, e)
            raise
        return updated

    async def delete_order(self, order_id: str) -> bool:
        """
        Cancels a NEW_ORDER order; any later state leaves everything untouched and returns False.
        An order whose insert is still in flight is cancelled once the remote store has it.
        """
        pending = self._pending_creates.get(order_id)
        if pending is not None:
            stored_id = await asyncio.shield(pending)
            if stored_id is None:
                logger.info("order %s was rolled back before it could be cancelled", order_id)
                return False
            order_id = stored_id
        order = self._require_order(order_id)
        if not lifecycle.can_cancel(order):
            logger.warning("order %s is %s, only new orders can be cancelled", order_id, order.status.value)
            return False
        self.store.remove_order(order_id)
        if self.remote is None:
            self._persist()
            return True
        try:
            await self.remote.delete(ORDERS, order_id)
        except RemoteError as e:
            logger.warning("order %s removed locally, remote delete failed: %s", order_id, e)
            raise
        return True

    async def toggle_menu_sold_out(self, item_id: str) -> MenuItem:
        menu_item = self.store.get_menu_item(item_id)
        if menu_item is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")
        updated = menu_item.model_copy(update={"is_sold_out": not menu_item.is_sold_out})
        self.store.upsert_menu_item(updated)
        if self.remote is None:
            self._persist()
            return updated
        try:
            await self.remote.update(MENU_ITEMS, item_id, {"is_sold_out": updated.is_sold_out})
        except RemoteError as e:
            logger.warning("sold-out flag of %s kept locally, remote write failed: %s", item_id, e)
            raise
        return updated

    # owner actions: written remotely first, cached once the remote store accepted them

    async def save_menu_item(self, menu_item: MenuItem) -> MenuItem:
        """Creates (empty or unknown id) or updates a menu item."""
        exists = bool(menu_item.id) and self.store.get_menu_item(menu_item.id) is not None
        if self.remote is None:
            saved = menu_item if menu_item.id else menu_item.model_copy(update={"id": f"local-{self.clock()}"})
        elif exists:
            await self.remote.update(MENU_ITEMS, menu_item.id, menu_item.to_row(include_id=False))
            saved = menu_item
        else:
            row = await self.remote.insert(MENU_ITEMS, menu_item.to_row(include_id=bool(menu_item.id)))
            saved = MenuItem.from_row({**menu_item.to_row(), **row})
        self.store.upsert_menu_item(saved)
        if self.remote is None:
            self._persist()
        return saved

    async def delete_menu_item(self, item_id: str) -> None:
        if self.store.get_menu_item(item_id) is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")
        if self.remote is not None:
            await self.remote.delete(MENU_ITEMS, item_id)
        self.store.remove_menu_item(item_id)
        if self.remote is None:
            self._persist()

    async def save_user(self, user: User) -> User:
        exists = bool(user.id) and self.store.get_user(user.id) is not None
        if self.remote is None:
            saved = user if user.id else user.model_copy(update={"id": f"u-{self.clock()}"})
        elif exists:
            await self.remote.update(USERS, user.id, user.to_row(include_id=False))
            saved = user
        else:
            row = await self.remote.insert(USERS, user.to_row(include_id=bool(user.id)))
            saved = User.from_row({**user.to_row(), **row})
        self.store.upsert_user(saved)
        if self.remote is None:
            self._persist()
        return saved

    async def delete_user(self, user_id: str) -> None:
        if self.store.get_user(user_id) is None:
            raise UserNotFoundError(f"user {user_id} not found")
        if self.remote is not None:
            await self.remote.delete(USERS, user_id)
        self.store.remove_user(user_id)
        if self.remote is None:
            self._persist()


def build_engine(config: Settings = settings) -> SyncEngine:
    """Wires an engine from settings: online iff REMOTE_URL is set."""
    remote = None
    channel = None
    if config.REMOTE_URL:
        remote = RemoteDataService(config.REMOTE_URL, api_key=config.REMOTE_API_KEY, timeout=config.REMOTE_TIMEOUT)
        if config.REDIS_URL:
            channel = RedisPushChannel(config.REDIS_URL, prefix=config.REALTIME_CHANNEL_PREFIX)
    return SyncEngine(
        remote=remote,
        channel=channel,
        snapshot_file=SnapshotFile(config.SNAPSHOT_PATH),
        reconcile_interval=config.RECONCILE_INTERVAL,
        refetch_on_push=config.REFETCH_ON_PUSH,
    )
