"""Local JSON snapshot used when the terminal runs without a remote data service."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from cafe_sync.domain import MenuItem, Order, User

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ORDERS_KEY = "orders"
MENU_ITEMS_KEY = "menu_items"
USERS_KEY = "users"


@dataclass(frozen=True)
class SnapshotData:
    """Collections read from disk; None means the key was absent."""

    orders: Optional[List[Order]] = None
    menu_items: Optional[List[MenuItem]] = None
    users: Optional[List[User]] = None


def _validate_rows(model: Type[M], rows: Any, key: str) -> Optional[List[M]]:
    if not isinstance(rows, list):
        logger.warning("snapshot: '%s' is not a list, ignoring it", key)
        return None
    result = []
    for row in rows:
        try:
            result.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning("snapshot: skipping invalid %s row: %s", key, e.errors()[:1])
    return result


class SnapshotFile:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> SnapshotData:
        if not self.path.exists():
            return SnapshotData()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("snapshot: cannot read %s, starting from seed data: %s", self.path, e)
            return SnapshotData()
        if not isinstance(raw, dict):
            logger.warning("snapshot: %s does not hold an object, starting from seed data", self.path)
            return SnapshotData()

        return SnapshotData(
            orders=_validate_rows(Order, raw[ORDERS_KEY], ORDERS_KEY) if ORDERS_KEY in raw else None,
            menu_items=_validate_rows(MenuItem, raw[MENU_ITEMS_KEY], MENU_ITEMS_KEY) if MENU_ITEMS_KEY in raw else None,
            users=_validate_rows(User, raw[USERS_KEY], USERS_KEY) if USERS_KEY in raw else None,
        )

    def save(self, orders: Iterable[Order], menu_items: Iterable[MenuItem], users: Iterable[User]) -> None:
        data = {
            ORDERS_KEY: [o.model_dump(mode="json", by_alias=True) for o in orders],
            MENU_ITEMS_KEY: [m.model_dump(mode="json", by_alias=True) for m in menu_items],
            USERS_KEY: [u.model_dump(mode="json", by_alias=True) for u in users],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)
