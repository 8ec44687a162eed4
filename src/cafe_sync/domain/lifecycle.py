"""
Order lifecycle: NEW_ORDER -> COOKING -> SERVED -> PAID.

Every function here is pure: it takes an order and returns a new one
(or a row patch for the remote store) without touching any store.
"""
from typing import Dict, List, Optional

from cafe_sync.clock import format_timestamp
from cafe_sync.domain.items import normalize_items, order_total
from cafe_sync.domain.order import Order, OrderItem
from cafe_sync.enums import OrderStatusEnum, PaymentMethodEnum
from cafe_sync.errors import (
    EmptyOrderError,
    InvalidTransitionError,
    OrderNotEditableError,
    PaymentRequiredError,
)

NEXT_STATUS: Dict[OrderStatusEnum, OrderStatusEnum] = {
    OrderStatusEnum.new: OrderStatusEnum.cooking,
    OrderStatusEnum.cooking: OrderStatusEnum.served,
    OrderStatusEnum.served: OrderStatusEnum.paid,
}

# timestamp stamped when an order enters the state
STAMP_FIELD: Dict[OrderStatusEnum, str] = {
    OrderStatusEnum.cooking: "cooking_at",
    OrderStatusEnum.served: "served_at",
    OrderStatusEnum.paid: "paid_at",
}

# timestamp that must already exist before the transition into the key state
REQUIRED_STAMP: Dict[OrderStatusEnum, str] = {
    OrderStatusEnum.served: "cooking_at",
    OrderStatusEnum.paid: "served_at",
}

EDITABLE_STATUSES = frozenset({OrderStatusEnum.new, OrderStatusEnum.cooking})
TERMINAL_STATUSES = frozenset({OrderStatusEnum.paid})


def next_status(status: OrderStatusEnum) -> Optional[OrderStatusEnum]:
    return NEXT_STATUS.get(status)


def is_terminal(order: Order) -> bool:
    return order.status in TERMINAL_STATUSES


def can_transition(order: Order, target: OrderStatusEnum) -> bool:
    if NEXT_STATUS.get(order.status) != target:
        return False
    required = REQUIRED_STAMP.get(target)
    return required is None or getattr(order, required) is not None


def can_cancel(order: Order) -> bool:
    return order.status == OrderStatusEnum.new


def can_edit(order: Order) -> bool:
    return order.status in EDITABLE_STATUSES


def new_order(
    order_id: str,
    table_number: str,
    items: List[OrderItem],
    waiter_id: str,
    now: int,
    notes: str = "",
) -> Order:
    kept = normalize_items(items)
    if not kept:
        raise EmptyOrderError("an order needs at least one item")
    return Order(
        id=order_id,
        table_number=table_number,
        items=kept,
        notes=notes,
        status=OrderStatusEnum.new,
        total_price=order_total(kept),
        created_at=now,
        waiter_id=waiter_id,
    )


def _latest_stamp(order: Order) -> int:
    stamps = [order.created_at, order.cooking_at, order.served_at, order.paid_at]
    return max(s for s in stamps if s is not None)


def transition(
    order: Order,
    target: OrderStatusEnum,
    now: int,
    payment_method: Optional[PaymentMethodEnum] = None,
) -> Order:
    """
    Moves the order one step forward and stamps the entry time of the new state.
    The stamp is clamped so it never precedes an earlier stage.
    """
    if order.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"order {order.id} is already {order.status.value}")
    if NEXT_STATUS.get(order.status) != target:
        raise InvalidTransitionError(
            f"order {order.id} cannot go from {order.status.value} to {target.value}"
        )
    required = REQUIRED_STAMP.get(target)
    if required is not None and getattr(order, required) is None:
        raise InvalidTransitionError(f"order {order.id} has no {required}, cannot move to {target.value}")
    if target == OrderStatusEnum.paid and payment_method is None:
        raise PaymentRequiredError(f"order {order.id} needs a payment method to be paid")

    update = {"status": target, STAMP_FIELD[target]: max(now, _latest_stamp(order))}
    if target == OrderStatusEnum.paid:
        update["payment_method"] = payment_method
    return order.model_copy(update=update)


def transition_patch(order: Order) -> dict:
    """Partial row describing the order's current stage."""
    patch = {"status": order.status.value}
    field = STAMP_FIELD.get(order.status)
    if field is not None:
        patch[field] = format_timestamp(getattr(order, field))
    if order.status == OrderStatusEnum.paid and order.payment_method is not None:
        patch["payment_method"] = order.payment_method.value
    return patch


def edit_items(
    order: Order,
    items: List[OrderItem],
    notes: Optional[str] = None,
    table_number: Optional[str] = None,
) -> Order:
    """Replaces the item lines (and optionally notes/table); status and timestamps stay as they are."""
    if not can_edit(order):
        raise OrderNotEditableError(f"order {order.id} is {order.status.value} and can no longer be edited")
    kept = normalize_items(items)
    if not kept:
        raise EmptyOrderError(f"order {order.id} would have no items left, cancel it instead")
    update = {"items": kept, "total_price": order_total(kept)}
    if notes is not None:
        update["notes"] = notes
    if table_number is not None:
        update["table_number"] = table_number
    return order.model_copy(update=update)


def edit_patch(order: Order) -> dict:
    return {
        "table_number": order.table_number,
        "items": [item.to_row() for item in order.items],
        "notes": order.notes,
        "total_price": order.total_price,
    }
