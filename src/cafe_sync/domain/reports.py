from typing import Dict, Iterable, List, Optional

from cafe_sync.domain.order import Order
from cafe_sync.enums import OrderStatusEnum


def _paid_in_range(orders: Iterable[Order], date_from: Optional[int], date_to: Optional[int]) -> List[Order]:
    result = []
    for order in orders:
        if order.status != OrderStatusEnum.paid:
            continue
        moment = order.paid_at if order.paid_at is not None else order.created_at
        if date_from is not None and moment < date_from:
            continue
        if date_to is not None and moment > date_to:
            continue
        result.append(order)
    return result


def revenue_summary(
    orders: Iterable[Order],
    date_from: Optional[int] = None,
    date_to: Optional[int] = None,
) -> Dict[str, int]:
    """
    Revenue of paid orders in [date_from, date_to] (epoch ms, both optional):
    - count_orders
    - total_revenue
    - average_check (integer division, smallest currency unit)
    """
    paid = _paid_in_range(orders, date_from, date_to)
    total_revenue = sum(o.total_price for o in paid)
    return {
        "count_orders": len(paid),
        "total_revenue": total_revenue,
        "average_check": total_revenue // len(paid) if paid else 0,
    }


def top_menu_items(
    orders: Iterable[Order],
    limit: int = 5,
    date_from: Optional[int] = None,
    date_to: Optional[int] = None,
) -> List[dict]:
    """Best sellers among paid orders, by units sold."""
    sold: Dict[str, dict] = {}
    for order in _paid_in_range(orders, date_from, date_to):
        for item in order.items:
            row = sold.setdefault(
                item.menu_item.id,
                {"menu_item_name": item.menu_item.name, "total_sold": 0, "total_revenue": 0},
            )
            row["total_sold"] += item.quantity
            row["total_revenue"] += item.quantity * item.menu_item.price
    ranked = sorted(sold.values(), key=lambda r: (-r["total_sold"], r["menu_item_name"]))
    return ranked[:limit]
