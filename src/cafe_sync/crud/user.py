from typing import List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_sync.models import User
from cafe_sync.schemas.user import UserCreate, UserUpdate


async def get_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.name))
    return list(result.scalars().all())


async def create_user(db: AsyncSession, user_in: UserCreate) -> User:
    if user_in.id and await db.get(User, user_in.id):
        raise ValueError(f"User with id={user_in.id} already exists")
    data = user_in.model_dump()
    data["id"] = user_in.id or uuid4().hex
    user = User(**data)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def update_user(db: AsyncSession, user_id: str, user_in: UserUpdate) -> Optional[User]:
    user = await db.get(User, user_id)
    if not user:
        return None
    for key, value in user_in.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, key, value)
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: str) -> bool:
    user = await db.get(User, user_id)
    if not user:
        return False
    await db.delete(user)
    await db.commit()
    return True
