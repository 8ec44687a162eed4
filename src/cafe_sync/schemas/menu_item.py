from typing import Optional

from pydantic import BaseModel, conint

from cafe_sync.enums import MenuCategoryEnum


class MenuItemRead(BaseModel):
    id: str
    name: str
    price: int
    category: MenuCategoryEnum
    image: str = ""
    is_sold_out: bool = False

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    id: Optional[str] = None
    name: str
    price: conint(ge=0)
    category: MenuCategoryEnum = MenuCategoryEnum.main_course
    image: str = ""
    is_sold_out: bool = False


class MenuItemUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[conint(ge=0)] = None
    category: Optional[MenuCategoryEnum] = None
    image: Optional[str] = None
    is_sold_out: Optional[bool] = None

    class Config:
        extra = "forbid"
