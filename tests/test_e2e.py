import asyncio

import httpx

from cafe_sync.domain import MenuItem, OrderItem
from cafe_sync.domain.queue import build_queue
from cafe_sync.enums import OrderStatusEnum, PaymentMethodEnum
from cafe_sync.main import app
from cafe_sync.sync.engine import SyncEngine
from cafe_sync.sync.remote import RemoteDataService

from .conftest import FakeClock

MINUTE = 60_000


def terminal(clock):
    remote = RemoteDataService("http://cafe", transport=httpx.ASGITransport(app=app))
    return SyncEngine(remote=remote, clock=clock, reconcile_interval=0)


def test_order_from_table_to_payment(client, publisher):
    clock = FakeClock()
    waiter = terminal(clock)
    kitchen = terminal(clock)

    async def run():
        await waiter.bootstrap()
        await kitchen.bootstrap()
        menu_item = MenuItem(id="m1", name="Nasi Goreng", price=15000)
        await waiter.save_menu_item(menu_item)

        order = await waiter.create_order("A1", [OrderItem(id="l1", menu_item=menu_item, quantity=2)], "w1")
        assert order.total_price == 30000

        # the kitchen terminal learns about the order from the push events
        for event in publisher.events:
            kitchen.apply_event(event)
        page = build_queue(kitchen.snapshot.orders, clock.advance(4 * MINUTE))
        assert [e.order.id for e in page.entries] == [order.id]
        assert page.entries[0].urgent

        await kitchen.update_order_status(order.id, OrderStatusEnum.cooking)
        clock.advance(MINUTE)
        await kitchen.update_order_status(order.id, OrderStatusEnum.served)
        clock.advance(MINUTE)

        # the waiter terminal catches up through reconciliation
        assert await waiter.reconcile()
        assert waiter.snapshot.get_order(order.id).status == OrderStatusEnum.served
        await waiter.update_order_status(order.id, OrderStatusEnum.paid, PaymentMethodEnum.cash)

        await kitchen.reconcile()
        paid = kitchen.snapshot.get_order(order.id)
        await waiter.close()
        await kitchen.close()
        return paid

    paid = asyncio.run(run())
    assert paid.status == OrderStatusEnum.paid
    assert paid.payment_method == PaymentMethodEnum.cash
    assert paid.created_at <= paid.cooking_at <= paid.served_at <= paid.paid_at
    assert paid.total_price == 30000
    assert build_queue([paid], clock.now).entries == ()
