from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_sync.clock import to_utc
from cafe_sync.domain import lifecycle
from cafe_sync.enums import OrderStatusEnum
from cafe_sync.models import Order
from cafe_sync.schemas.order import OrderCreate, OrderUpdate, items_total

# columns a patch may not null out
NOT_NULL_FIELDS = {"table_number", "notes", "status"}

STAGES = [OrderStatusEnum.new, OrderStatusEnum.cooking, OrderStatusEnum.served, OrderStatusEnum.paid]
STAMP_FIELDS = ("created_at", "cooking_at", "served_at", "paid_at")


async def get_orders(db: AsyncSession, status: Optional[OrderStatusEnum] = None) -> List[Order]:
    """
    Returns all orders, newest first.
    Optionally filtered by status.
    """
    stmt = select(Order).order_by(Order.created_at.desc())
    if status:
        stmt = stmt.where(Order.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_order_by_id(db: AsyncSession, order_id: str) -> Optional[Order]:
    return await db.get(Order, order_id)


def check_stages(status: OrderStatusEnum, stamps: dict, payment_method) -> None:
    """
    Raises ValueError unless the stamps match the status: every stage reached
    is stamped, no later stage is, and the stamps never go back in time.
    """
    reached = STAGES.index(status)
    for stage, field in lifecycle.STAMP_FIELD.items():
        stamped = stamps.get(field) is not None
        if STAGES.index(stage) <= reached and not stamped:
            raise ValueError(f"A {status.value} order needs {field}")
        if STAGES.index(stage) > reached and stamped:
            raise ValueError(f"{field} is set but the order is only {status.value}")

    previous = None
    for field in STAMP_FIELDS:
        stamp = stamps.get(field)
        if stamp is None:
            continue
        if previous is not None and to_utc(stamp) < previous:
            raise ValueError(f"{field} precedes an earlier stage")
        previous = to_utc(stamp)

    if (status == OrderStatusEnum.paid) != (payment_method is not None):
        raise ValueError("payment_method is set exactly when the order is PAID")


async def create_order(db: AsyncSession, order_in: OrderCreate) -> Order:
    """
    Stores a new order. The client id is kept when given, otherwise one is assigned.
    total_price is always recomputed from the item lines.
    """
    if order_in.id and await db.get(Order, order_in.id):
        raise ValueError(f"Order with id={order_in.id} already exists")
    if not order_in.items:
        raise ValueError("An order needs at least one item")
    if order_in.created_at is None:
        order_in = order_in.model_copy(update={"created_at": datetime.now(timezone.utc)})
    check_stages(order_in.status, order_in.model_dump(include=set(STAMP_FIELDS)), order_in.payment_method)

    order = Order(
        id=order_in.id or uuid4().hex,
        table_number=order_in.table_number,
        items=[item.model_dump(mode="json") for item in order_in.items],
        notes=order_in.notes,
        status=order_in.status,
        total_price=items_total(order_in.items),
        created_at=to_utc(order_in.created_at),
        cooking_at=to_utc(order_in.cooking_at) if order_in.cooking_at else None,
        served_at=to_utc(order_in.served_at) if order_in.served_at else None,
        paid_at=to_utc(order_in.paid_at) if order_in.paid_at else None,
        waiter_id=order_in.waiter_id,
        payment_method=order_in.payment_method,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


async def update_order(db: AsyncSession, order_id: str, order_in: OrderUpdate) -> Optional[Order]:
    """
    Partial update: only the fields present in the patch are written.
    Status only moves one stage forward (stamped now when the patch carries
    no stamp), and items change only while the order is NEW or COOKING.
    Rejected patches raise ValueError.
    """
    order = await db.get(Order, order_id)
    if not order:
        return None

    update_data = order_in.model_dump(exclude_unset=True)
    current = order.status
    target = update_data.get("status") or current

    if target != current:
        if lifecycle.next_status(current) != target:
            raise ValueError(f"Order {order_id} cannot go from {current.value} to {target.value}")
        field = lifecycle.STAMP_FIELD[target]
        if update_data.get(field) is None:
            latest = max(to_utc(getattr(order, f)) for f in STAMP_FIELDS if getattr(order, f) is not None)
            update_data[field] = max(datetime.now(timezone.utc), latest)

    if update_data.get("items") is not None:
        if current not in lifecycle.EDITABLE_STATUSES:
            raise ValueError(f"Order {order_id} is {current.value}, its items can no longer change")
        if not update_data["items"]:
            raise ValueError(f"Order {order_id} would have no items left, delete it instead")

    stamps = {f: update_data[f] if f in update_data else getattr(order, f) for f in STAMP_FIELDS}
    payment_method = update_data["payment_method"] if "payment_method" in update_data else order.payment_method
    check_stages(target, stamps, payment_method)

    if update_data.get("items") is not None:
        order.items = [item.model_dump(mode="json") for item in order_in.items]
        order.total_price = items_total(order_in.items)

    for key, value in update_data.items():
        if key in {"items", "total_price"}:
            continue
        if value is None and key in NOT_NULL_FIELDS:
            continue
        if isinstance(value, datetime):
            value = to_utc(value)
        setattr(order, key, value)

    await db.commit()
    await db.refresh(order)
    return order


async def delete_order(db: AsyncSession, order_id: str) -> bool:
    """
    Deletes an order. Only orders nobody has started cooking can go.
    """
    order = await db.get(Order, order_id)
    if not order:
        return False
    if order.status != OrderStatusEnum.new:
        raise ValueError(f"Order {order_id} is {order.status.value}, only new orders can be deleted")
    await db.delete(order)
    await db.commit()
    return True
