from typing import List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_sync.models import MenuItem
from cafe_sync.schemas.menu_item import MenuItemCreate, MenuItemUpdate


async def get_menu_items(db: AsyncSession) -> List[MenuItem]:
    result = await db.execute(select(MenuItem).order_by(MenuItem.name))
    return list(result.scalars().all())


async def create_menu_item(db: AsyncSession, item_in: MenuItemCreate) -> MenuItem:
    if item_in.id and await db.get(MenuItem, item_in.id):
        raise ValueError(f"Menu item with id={item_in.id} already exists")
    data = item_in.model_dump()
    data["id"] = item_in.id or uuid4().hex
    item = MenuItem(**data)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def update_menu_item(db: AsyncSession, item_id: str, item_in: MenuItemUpdate) -> Optional[MenuItem]:
    item = await db.get(MenuItem, item_id)
    if not item:
        return None
    for key, value in item_in.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(item, key, value)
    await db.commit()
    await db.refresh(item)
    return item


async def delete_menu_item(db: AsyncSession, item_id: str) -> bool:
    item = await db.get(MenuItem, item_id)
    if not item:
        return False
    await db.delete(item)
    await db.commit()
    return True
