import pytest

from cafe_sync.domain import Order
from cafe_sync.domain.queue import (
    PAGE_SIZE_OPTIONS,
    KitchenQueue,
    active_orders,
    build_queue,
    is_urgent,
    status_counts,
)
from cafe_sync.enums import OrderStatusEnum

from .conftest import T0

MINUTE = 60_000


def make(order_id, status=OrderStatusEnum.new, created_at=T0):
    return Order(id=order_id, status=status, created_at=created_at)


def test_new_orders_first_then_oldest_first():
    orders = [
        make("cooking-old", OrderStatusEnum.cooking, T0 - 10 * MINUTE),
        make("new-late", OrderStatusEnum.new, T0),
        make("paid", OrderStatusEnum.paid, T0 - 20 * MINUTE),
        make("new-early", OrderStatusEnum.new, T0 - MINUTE),
        make("served", OrderStatusEnum.served, T0 - 5 * MINUTE),
    ]
    assert [o.id for o in active_orders(orders)] == ["new-early", "new-late", "cooking-old", "served"]


def test_equal_timestamps_keep_incoming_order():
    orders = [make("b"), make("a"), make("c")]
    assert [o.id for o in active_orders(orders)] == ["b", "a", "c"]


def test_urgency_threshold_is_strict():
    order = make("o1", created_at=T0)
    assert not is_urgent(order, T0 + 2 * MINUTE + 59_000)
    assert not is_urgent(order, T0 + 3 * MINUTE)
    assert is_urgent(order, T0 + 3 * MINUTE + 1000)
    cooking = make("o2", OrderStatusEnum.cooking, T0)
    assert not is_urgent(cooking, T0 + 60 * MINUTE)


def test_entries_carry_wait_and_urgency():
    page = build_queue([make("o1", created_at=T0)], T0 + 4 * MINUTE)
    entry = page.entries[0]
    assert entry.urgent
    assert entry.wait_minutes == 4


def test_pagination_of_25_orders():
    orders = [make(f"o{i}", created_at=T0 + i) for i in range(25)]
    page = build_queue(orders, T0, page=1, page_size=12)
    assert page.total_pages == 3
    assert len(page.entries) == 12
    assert (page.start_item, page.end_item) == (1, 12)

    last = build_queue(orders, T0, page=3, page_size=12)
    assert [e.order.id for e in last.entries] == ["o24"]
    assert (last.start_item, last.end_item) == (25, 25)
    assert last.has_prev and not last.has_next

    clamped = build_queue(orders, T0, page=4, page_size=12)
    assert clamped.page == 3


def test_empty_queue():
    page = build_queue([], T0)
    assert page.total_pages == 0
    assert page.page == 1
    assert page.entries == ()
    assert (page.start_item, page.end_item) == (0, 0)


def test_kitchen_queue_navigation():
    orders = [make(f"o{i}", created_at=T0 + i) for i in range(25)]
    queue = KitchenQueue(page_size=12)
    queue.view(orders, T0)
    assert queue.next_page() == 2
    assert queue.next_page() == 3
    assert queue.next_page() == 3
    assert queue.prev_page() == 2

    assert queue.go_to(3) == 3
    queue.set_page_size(8)
    assert queue.page == 1
    assert queue.view(orders, T0).total_pages == 4
    assert queue.go_to(10) == 4


def test_kitchen_queue_clamps_when_orders_disappear():
    orders = [make(f"o{i}", created_at=T0 + i) for i in range(25)]
    queue = KitchenQueue(page_size=12)
    queue.view(orders, T0)
    queue.go_to(3)
    page = queue.view(orders[:12], T0)
    assert page.page == 1
    assert queue.page == 1
    assert queue.prev_page() == 1
    assert queue.next_page() == 1


def test_page_size_must_be_an_option():
    assert PAGE_SIZE_OPTIONS == (8, 12, 24, 48)
    with pytest.raises(ValueError):
        KitchenQueue(page_size=10)
    with pytest.raises(ValueError):
        KitchenQueue().set_page_size(5)


def test_status_counts():
    orders = [
        make("a"),
        make("b"),
        make("c", OrderStatusEnum.cooking),
        make("d", OrderStatusEnum.paid),
    ]
    assert status_counts(orders) == {
        OrderStatusEnum.new: 2,
        OrderStatusEnum.cooking: 1,
        OrderStatusEnum.served: 0,
    }


def test_kitchen_queue_moves_to_last_remaining_page():
    orders = [make(f"o{i}", created_at=T0 + i) for i in range(25)]
    queue = KitchenQueue(page_size=12)
    queue.view(orders, T0)
    queue.go_to(3)
    assert queue.view(orders[:20], T0).page == 2
    assert queue.prev_page() == 1
    assert queue.view(orders, T0).page == 1
