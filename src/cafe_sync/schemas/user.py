from typing import Optional

from pydantic import BaseModel, constr

from cafe_sync.enums import RoleEnum


class UserRead(BaseModel):
    id: str
    name: str
    role: RoleEnum
    pin: str

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    id: Optional[str] = None
    name: str
    role: RoleEnum = RoleEnum.waiter
    pin: constr(pattern=r"^\d{4,12}$")


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[RoleEnum] = None
    pin: Optional[constr(pattern=r"^\d{4,12}$")] = None

    class Config:
        extra = "forbid"
