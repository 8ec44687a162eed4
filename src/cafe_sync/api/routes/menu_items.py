from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_sync.api.deps import require_api_key
from cafe_sync.crud.menu_item import create_menu_item, delete_menu_item, get_menu_items, update_menu_item
from cafe_sync.db.session import get_async_session
from cafe_sync.models import MenuItem
from cafe_sync.realtime.events import MENU_ITEMS
from cafe_sync.realtime.publisher import EventPublisher, get_publisher
from cafe_sync.schemas.menu_item import MenuItemCreate, MenuItemRead, MenuItemUpdate


router = APIRouter(prefix="/menu_items", tags=["menu"], dependencies=[Depends(require_api_key)])


def _row(item) -> dict:
    return MenuItemRead.model_validate(item).model_dump(mode="json")


@router.get("/", response_model=List[MenuItemRead])
async def list_menu_items(db: AsyncSession = Depends(get_async_session)):
    return await get_menu_items(db)


@router.post("/", response_model=MenuItemRead, status_code=201)
async def create_menu_item_endpoint(
    item_in: MenuItemCreate,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    try:
        item = await create_menu_item(db, item_in)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    row = _row(item)
    await publisher.publish(MENU_ITEMS, "INSERT", new=row)
    return row


@router.patch("/{item_id}", response_model=MenuItemRead)
async def patch_menu_item(
    item_id: str,
    item_in: MenuItemUpdate,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    """
    Partial update; toggling is_sold_out goes through here too.
    """
    old = await db.get(MenuItem, item_id)
    if not old:
        raise HTTPException(status_code=404, detail="Menu item not found")
    old_row = _row(old)

    item = await update_menu_item(db, item_id, item_in)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")
    row = _row(item)
    await publisher.publish(MENU_ITEMS, "UPDATE", new=row, old=old_row)
    return row


@router.delete("/{item_id}", status_code=204)
async def remove_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    item = await db.get(MenuItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")
    old_row = _row(item)
    await delete_menu_item(db, item_id)
    await publisher.publish(MENU_ITEMS, "DELETE", old=old_row)
