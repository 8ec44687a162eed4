"""
In-memory state of one terminal.

The store only caches: orders, menu items and users are owned by the
remote data service. Every mutator reports whether something changed,
and listeners are called only when it did.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from cafe_sync.domain import MenuItem, Order, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreSnapshot:
    orders: Tuple[Order, ...] = ()
    menu_items: Tuple[MenuItem, ...] = ()
    users: Tuple[User, ...] = ()
    connected: bool = False
    last_updated: Optional[int] = None

    def get_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)


Listener = Callable[[StoreSnapshot], None]


def _upsert(rows: Tuple, row, prepend: bool = False) -> Optional[Tuple]:
    """New tuple with row inserted or replaced by id; None if nothing changes."""
    for index, existing in enumerate(rows):
        if existing.id == row.id:
            if existing == row:
                return None
            return rows[:index] + (row,) + rows[index + 1:]
    return (row,) + rows if prepend else rows + (row,)


def _remove(rows: Tuple, row_id: str) -> Tuple[Optional[Tuple], Optional[object]]:
    for index, existing in enumerate(rows):
        if existing.id == row_id:
            return rows[:index] + rows[index + 1:], existing
    return None, None


class LocalStateStore:
    def __init__(
        self,
        orders: Iterable[Order] = (),
        menu_items: Iterable[MenuItem] = (),
        users: Iterable[User] = (),
    ):
        self._state = StoreSnapshot(tuple(orders), tuple(menu_items), tuple(users))
        self._listeners: List[Listener] = []

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: StoreSnapshot) -> bool:
        if state == self._state:
            return False
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("store listener %r failed", listener)
        return True

    # lookups

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._state.get_order(order_id)

    def get_menu_item(self, item_id: str) -> Optional[MenuItem]:
        return next((m for m in self._state.menu_items if m.id == item_id), None)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self._state.users if u.id == user_id), None)

    def user_by_pin(self, pin: str) -> Optional[User]:
        return next((u for u in self._state.users if u.pin == pin), None)

    # mutators

    def replace(
        self,
        orders: Optional[Sequence[Order]] = None,
        menu_items: Optional[Sequence[MenuItem]] = None,
        users: Optional[Sequence[User]] = None,
        last_updated: Optional[int] = None,
    ) -> bool:
        """
        Swaps whole collections. Content equal to what is cached leaves the
        store (and last_updated) untouched, so listeners are not woken for nothing.
        """
        state = self._state
        if orders is not None:
            state = dataclasses.replace(state, orders=tuple(orders))
        if menu_items is not None:
            state = dataclasses.replace(state, menu_items=tuple(menu_items))
        if users is not None:
            state = dataclasses.replace(state, users=tuple(users))
        if state == self._state:
            return False
        if last_updated is not None:
            state = dataclasses.replace(state, last_updated=last_updated)
        return self._commit(state)

    def upsert_order(self, order: Order) -> bool:
        # newest first, like the remote listing
        orders = _upsert(self._state.orders, order, prepend=True)
        return orders is not None and self._commit(dataclasses.replace(self._state, orders=orders))

    def remove_order(self, order_id: str) -> Optional[Order]:
        orders, removed = _remove(self._state.orders, order_id)
        if orders is not None:
            self._commit(dataclasses.replace(self._state, orders=orders))
        return removed

    def rename_order(self, old_id: str, new_id: str) -> Optional[Order]:
        """Re-keys a local order once the remote store assigned its own id."""
        order = self.get_order(old_id)
        if order is None or old_id == new_id:
            return order
        renamed = order.model_copy(update={"id": new_id})
        orders = tuple(o for o in self._state.orders if o.id != new_id)
        orders = tuple(renamed if o.id == old_id else o for o in orders)
        self._commit(dataclasses.replace(self._state, orders=orders))
        return renamed

    def upsert_menu_item(self, menu_item: MenuItem) -> bool:
        menu_items = _upsert(self._state.menu_items, menu_item)
        return menu_items is not None and self._commit(dataclasses.replace(self._state, menu_items=menu_items))

    def remove_menu_item(self, item_id: str) -> Optional[MenuItem]:
        menu_items, removed = _remove(self._state.menu_items, item_id)
        if menu_items is not None:
            self._commit(dataclasses.replace(self._state, menu_items=menu_items))
        return removed

    def upsert_user(self, user: User) -> bool:
        users = _upsert(self._state.users, user)
        return users is not None and self._commit(dataclasses.replace(self._state, users=users))

    def remove_user(self, user_id: str) -> Optional[User]:
        users, removed = _remove(self._state.users, user_id)
        if users is not None:
            self._commit(dataclasses.replace(self._state, users=users))
        return removed

    def set_connected(self, connected: bool) -> bool:
        return self._commit(dataclasses.replace(self._state, connected=connected))

    def touch(self, last_updated: int) -> bool:
        return self._commit(dataclasses.replace(self._state, last_updated=last_updated))
