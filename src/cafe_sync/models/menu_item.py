from sqlalchemy import Column, Integer, String, Boolean, Enum

from cafe_sync.db.base import Base
from cafe_sync.enums import MenuCategoryEnum


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    price = Column(Integer, nullable=False, default=0)  # smallest currency unit
    category = Column(Enum(MenuCategoryEnum, name="menu_category", values_callable=lambda e: [m.value for m in e]),
                      nullable=False, default=MenuCategoryEnum.main_course)
    image = Column(String(512), nullable=False, default="")
    is_sold_out = Column(Boolean, nullable=False, default=False)
