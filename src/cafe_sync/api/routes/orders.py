from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_sync.api.deps import require_api_key
from cafe_sync.crud.order import create_order, get_orders, get_order_by_id, update_order, delete_order
from cafe_sync.db.session import get_async_session
from cafe_sync.enums import OrderStatusEnum
from cafe_sync.realtime.events import ORDERS
from cafe_sync.realtime.publisher import EventPublisher, get_publisher
from cafe_sync.schemas.order import OrderCreate, OrderRead, OrderUpdate


router = APIRouter(prefix="/orders", tags=["orders"], dependencies=[Depends(require_api_key)])


def _row(order) -> dict:
    return OrderRead.model_validate(order).model_dump(mode="json")


@router.get("/", response_model=List[OrderRead])
async def list_orders(
    status: Optional[OrderStatusEnum] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Returns every order, newest first.
    Terminals use this for bootstrap and reconciliation.
    """
    return await get_orders(db, status=status)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: str = Path(..., description="Order ID"),
    db: AsyncSession = Depends(get_async_session),
):
    order = await get_order_by_id(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/", response_model=OrderRead, status_code=201)
async def create_order_endpoint(
    order_in: OrderCreate,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    """
    Stores the order and announces it; the response carries the stored id.
    """
    try:
        order = await create_order(db, order_in)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    row = _row(order)
    await publisher.publish(ORDERS, "INSERT", new=row)
    return row


@router.patch("/{order_id}", response_model=OrderRead)
async def patch_order_endpoint(
    order_id: str,
    order_in: OrderUpdate,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    """
    Partial update of an order.
    Accepted fields: table_number, items, notes, status, cooking_at, served_at, paid_at, payment_method.
    """
    old = await get_order_by_id(db, order_id)
    if not old:
        raise HTTPException(status_code=404, detail="Order not found")
    old_row = _row(old)

    try:
        order = await update_order(db, order_id, order_in)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    row = _row(order)
    await publisher.publish(ORDERS, "UPDATE", new=row, old=old_row)
    return row


@router.delete("/{order_id}", status_code=204)
async def remove_order(
    order_id: str,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    """
    Deletes (cancels) an order that is still new.
    """
    order = await get_order_by_id(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    old_row = _row(order)
    try:
        deleted = await delete_order(db, order_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Order not found")
    await publisher.publish(ORDERS, "DELETE", old=old_row)
