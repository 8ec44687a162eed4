from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum as SAEnum, func

from cafe_sync.db.base import Base
from cafe_sync.enums import OrderStatusEnum, PaymentMethodEnum


def _values(enum_cls):
    return [m.value for m in enum_cls]


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, index=True)
    table_number = Column(String(64), nullable=False, default="")
    # item lines with a copy of the menu item as it was when ordered
    items = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=False, default="")
    status = Column(SAEnum(OrderStatusEnum, name="order_status", values_callable=_values),
                    nullable=False, default=OrderStatusEnum.new)
    total_price = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    cooking_at = Column(DateTime(timezone=True), nullable=True)
    served_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    waiter_id = Column(String(64), nullable=False, default="")
    payment_method = Column(SAEnum(PaymentMethodEnum, name="payment_method", values_callable=_values),
                            nullable=True)
