import logging
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from cafe_sync.clock import format_timestamp, now_ms, parse_timestamp
from cafe_sync.domain.coerce import as_enum, as_int, as_str
from cafe_sync.domain.menu_item import MenuItem
from cafe_sync.enums import OrderStatusEnum, PaymentMethodEnum

logger = logging.getLogger(__name__)


class OrderItem(BaseModel):
    id: str
    menu_item: MenuItem  # snapshot taken when the order was placed
    quantity: int = Field(default=1, ge=1)

    @classmethod
    def from_row(cls, row: Any) -> Optional["OrderItem"]:
        """Returns None for lines that cannot be kept (not a mapping, quantity below 1)."""
        if not isinstance(row, Mapping):
            return None
        quantity = as_int(row.get("quantity"))
        if quantity < 1:
            return None
        menu_row = row.get("menu_item")
        if not isinstance(menu_row, Mapping):
            menu_row = row.get("menuItem")
        menu_item = MenuItem.from_row(menu_row if isinstance(menu_row, Mapping) else {})
        return cls(id=as_str(row.get("id")), menu_item=menu_item, quantity=quantity)

    def to_row(self) -> dict:
        return {"id": self.id, "menu_item": self.menu_item.to_row(), "quantity": self.quantity}

    class Config:
        frozen = True
        populate_by_name = True
        alias_generator = to_camel


class Order(BaseModel):
    id: str
    table_number: str = ""
    items: List[OrderItem] = []
    notes: str = ""
    status: OrderStatusEnum = OrderStatusEnum.new
    total_price: int = 0
    created_at: int
    cooking_at: Optional[int] = None
    served_at: Optional[int] = None
    paid_at: Optional[int] = None
    waiter_id: str = ""
    payment_method: Optional[PaymentMethodEnum] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_verified_at(cls, data: Any) -> Any:
        # some terminals call the NEW -> COOKING stamp "verifiedAt"
        if isinstance(data, dict) and "cookingAt" not in data and "cooking_at" not in data:
            for key in ("verifiedAt", "verified_at"):
                if key in data:
                    data = {**data, "cookingAt": data[key]}
                    break
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        """
        Builds an order from a snake_case row.
        Missing or broken fields fall back to defaults one by one,
        and total_price is recomputed from the kept item lines.
        """
        raw_items = row.get("items")
        items = []
        if isinstance(raw_items, list):
            items = [item for item in (OrderItem.from_row(r) for r in raw_items) if item is not None]
            if len(items) != len(raw_items):
                logger.debug("order %s: dropped %d unusable item line(s)", row.get("id"), len(raw_items) - len(items))

        created_at = parse_timestamp(row.get("created_at"))
        cooking_raw = row.get("cooking_at")
        if cooking_raw is None:
            cooking_raw = row.get("verified_at")
        payment_raw = row.get("payment_method")

        return cls(
            id=as_str(row.get("id")),
            table_number=as_str(row.get("table_number")),
            items=items,
            notes=as_str(row.get("notes")),
            status=as_enum(OrderStatusEnum, row.get("status"), OrderStatusEnum.new),
            total_price=sum(item.menu_item.price * item.quantity for item in items),
            created_at=created_at if created_at is not None else now_ms(),
            cooking_at=parse_timestamp(cooking_raw),
            served_at=parse_timestamp(row.get("served_at")),
            paid_at=parse_timestamp(row.get("paid_at")),
            waiter_id=as_str(row.get("waiter_id")),
            payment_method=as_enum(PaymentMethodEnum, payment_raw, None) if payment_raw else None,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "table_number": self.table_number,
            "items": [item.to_row() for item in self.items],
            "notes": self.notes,
            "status": self.status.value,
            "total_price": self.total_price,
            "created_at": format_timestamp(self.created_at),
            "cooking_at": format_timestamp(self.cooking_at),
            "served_at": format_timestamp(self.served_at),
            "paid_at": format_timestamp(self.paid_at),
            "waiter_id": self.waiter_id,
            "payment_method": self.payment_method.value if self.payment_method else None,
        }

    class Config:
        frozen = True
        populate_by_name = True
        alias_generator = to_camel
