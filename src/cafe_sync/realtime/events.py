import json
import logging
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from cafe_sync.clock import now_ms

logger = logging.getLogger(__name__)

ORDERS = "orders"
MENU_ITEMS = "menu_items"
USERS = "users"
SYNCED_TABLES = (ORDERS, MENU_ITEMS)

EventType = Literal["INSERT", "UPDATE", "DELETE"]


class PushEvent(BaseModel):
    """One row-level change announced on the push channel."""

    table: str
    type: EventType
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    ts_ms: int = Field(default_factory=now_ms)

    @property
    def row_id(self) -> str:
        row = self.old if self.type == "DELETE" else self.new
        if not row or row.get("id") is None:
            return ""
        return str(row["id"])

    def to_message(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_message(cls, data: Union[str, bytes]) -> Optional["PushEvent"]:
        """Parses a channel message; malformed payloads are logged and give None."""
        try:
            return cls.model_validate_json(data)
        except (ValidationError, json.JSONDecodeError) as e:
            logger.warning("push channel: dropping malformed message: %s", e)
            return None


def channel_name(prefix: str, table: str) -> str:
    return f"{prefix}:{table}"
