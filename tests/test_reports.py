from cafe_sync.domain import Order, OrderItem
from cafe_sync.domain.reports import revenue_summary, top_menu_items
from cafe_sync.enums import OrderStatusEnum

from .conftest import T0


def paid_order(order_id, lines, paid_at=T0):
    return Order(
        id=order_id,
        items=lines,
        status=OrderStatusEnum.paid,
        total_price=sum(line.menu_item.price * line.quantity for line in lines),
        created_at=paid_at - 1000,
        paid_at=paid_at,
    )


def test_revenue_summary_counts_only_paid(nasi, teh):
    orders = [
        paid_order("a", [OrderItem(id="1", menu_item=nasi, quantity=2)]),
        paid_order("b", [OrderItem(id="2", menu_item=teh, quantity=1)]),
        Order(id="c", items=[OrderItem(id="3", menu_item=nasi, quantity=5)], total_price=75000, created_at=T0),
    ]
    assert revenue_summary(orders) == {"count_orders": 2, "total_revenue": 35000, "average_check": 17500}


def test_revenue_summary_date_range(nasi):
    orders = [
        paid_order("a", [OrderItem(id="1", menu_item=nasi, quantity=1)], paid_at=T0),
        paid_order("b", [OrderItem(id="2", menu_item=nasi, quantity=1)], paid_at=T0 + 10_000),
    ]
    assert revenue_summary(orders, date_from=T0 + 1)["count_orders"] == 1
    assert revenue_summary(orders, date_to=T0)["count_orders"] == 1
    assert revenue_summary([]) == {"count_orders": 0, "total_revenue": 0, "average_check": 0}


def test_top_menu_items(nasi, teh):
    orders = [
        paid_order("a", [OrderItem(id="1", menu_item=nasi, quantity=1), OrderItem(id="2", menu_item=teh, quantity=3)]),
        paid_order("b", [OrderItem(id="3", menu_item=nasi, quantity=1)]),
    ]
    top = top_menu_items(orders)
    assert top[0] == {"menu_item_name": "Es Teh", "total_sold": 3, "total_revenue": 15000}
    assert top[1] == {"menu_item_name": "Nasi Goreng", "total_sold": 2, "total_revenue": 30000}
    assert len(top_menu_items(orders, limit=1)) == 1
