from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_sync.api.deps import require_api_key
from cafe_sync.crud.user import create_user, delete_user, get_users, update_user
from cafe_sync.db.session import get_async_session
from cafe_sync.models import User
from cafe_sync.realtime.events import USERS
from cafe_sync.realtime.publisher import EventPublisher, get_publisher
from cafe_sync.schemas.user import UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_api_key)])


@router.get("/", response_model=List[UserRead])
async def list_users(db: AsyncSession = Depends(get_async_session)):
    return await get_users(db)


@router.post("/", response_model=UserRead, status_code=201)
async def create_user_endpoint(
    user_in: UserCreate,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    try:
        user = await create_user(db, user_in)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    row = UserRead.model_validate(user).model_dump(mode="json")
    await publisher.publish(USERS, "INSERT", new=row)
    return row


@router.patch("/{user_id}", response_model=UserRead)
async def patch_user(
    user_id: str,
    user_in: UserUpdate,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    user = await update_user(db, user_id, user_in)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    row = UserRead.model_validate(user).model_dump(mode="json")
    await publisher.publish(USERS, "UPDATE", new=row)
    return row


@router.delete("/{user_id}", status_code=204)
async def remove_user(
    user_id: str,
    db: AsyncSession = Depends(get_async_session),
    publisher: EventPublisher = Depends(get_publisher),
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    old_row = UserRead.model_validate(user).model_dump(mode="json")
    await delete_user(db, user_id)
    await publisher.publish(USERS, "DELETE", old=old_row)
