from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, conint, field_validator

from cafe_sync.clock import to_utc
from cafe_sync.enums import MenuCategoryEnum, OrderStatusEnum, PaymentMethodEnum

TIMESTAMP_FIELDS = ("created_at", "cooking_at", "served_at", "paid_at")


class MenuItemSnapshot(BaseModel):
    id: str
    name: str = ""
    price: conint(ge=0) = 0
    category: MenuCategoryEnum = MenuCategoryEnum.main_course
    image: str = ""
    is_sold_out: bool = False


class OrderItemRow(BaseModel):
    id: str
    menu_item: MenuItemSnapshot
    quantity: conint(ge=1)

    @property
    def line_total(self) -> int:
        return self.menu_item.price * self.quantity


def items_total(items: List[OrderItemRow]) -> int:
    return sum(item.line_total for item in items)


class OrderRead(BaseModel):
    id: str
    table_number: str
    items: List[OrderItemRow] = []
    notes: str = ""
    status: OrderStatusEnum
    total_price: int
    created_at: datetime
    cooking_at: Optional[datetime] = None
    served_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    waiter_id: str = ""
    payment_method: Optional[PaymentMethodEnum] = None

    @field_validator(*TIMESTAMP_FIELDS)
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive datetimes
        return to_utc(value) if value is not None else None

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    id: Optional[str] = None
    table_number: str = ""
    items: List[OrderItemRow]
    notes: str = ""
    status: OrderStatusEnum = OrderStatusEnum.new
    total_price: Optional[int] = None  # recomputed from items
    created_at: Optional[datetime] = None
    cooking_at: Optional[datetime] = None
    served_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    waiter_id: str = ""
    payment_method: Optional[PaymentMethodEnum] = None


class OrderUpdate(BaseModel):
    table_number: Optional[str] = None
    items: Optional[List[OrderItemRow]] = None
    notes: Optional[str] = None
    status: Optional[OrderStatusEnum] = None
    total_price: Optional[int] = None  # recomputed when items change
    cooking_at: Optional[datetime] = None
    served_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethodEnum] = None

    class Config:
        extra = "forbid"
