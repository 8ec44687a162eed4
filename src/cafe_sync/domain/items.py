from typing import Iterable, List, Optional
from uuid import uuid4

from cafe_sync.domain.menu_item import MenuItem
from cafe_sync.domain.order import OrderItem
from cafe_sync.errors import SoldOutError


def line_total(item: OrderItem) -> int:
    return item.menu_item.price * item.quantity


def order_total(items: Iterable[OrderItem]) -> int:
    return sum(line_total(item) for item in items)


def normalize_items(items: Iterable[OrderItem]) -> List[OrderItem]:
    """Lines never survive at quantity zero."""
    return [item for item in items if item.quantity >= 1]


def new_line_id() -> str:
    return uuid4().hex[:12]


def adjust_quantity(
    items: List[OrderItem],
    menu_item: MenuItem,
    delta: int,
    line_id: Optional[str] = None,
) -> List[OrderItem]:
    """
    Cart arithmetic for the order-taking terminal.
    The line for menu_item gains delta units; a first positive delta adds
    a line, and a line that drops to zero is removed.
    """
    result = []
    found = False
    for item in items:
        if item.menu_item.id != menu_item.id:
            result.append(item)
            continue
        found = True
        if delta > 0 and menu_item.is_sold_out:
            raise SoldOutError(f"{menu_item.name} is sold out")
        quantity = item.quantity + delta
        if quantity >= 1:
            result.append(item.model_copy(update={"quantity": quantity}))

    if not found and delta > 0:
        if menu_item.is_sold_out:
            raise SoldOutError(f"{menu_item.name} is sold out")
        result.append(OrderItem(id=line_id or new_line_id(), menu_item=menu_item, quantity=delta))
    return result


def set_quantity(items: List[OrderItem], line_id: str, quantity: int) -> List[OrderItem]:
    """Kitchen-side edit of a single line; zero (or less) removes it."""
    result = []
    for item in items:
        if item.id != line_id:
            result.append(item)
        elif quantity >= 1:
            result.append(item.model_copy(update={"quantity": quantity}))
    return result
