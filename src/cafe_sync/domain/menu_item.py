from typing import Any, Mapping

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from cafe_sync.domain.coerce import as_bool, as_enum, as_int, as_str
from cafe_sync.enums import MenuCategoryEnum


class MenuItem(BaseModel):
    id: str
    name: str = ""
    price: int = Field(default=0, ge=0)  # smallest currency unit
    category: MenuCategoryEnum = MenuCategoryEnum.main_course
    image: str = ""
    is_sold_out: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        return cls(
            id=as_str(row.get("id")),
            name=as_str(row.get("name")),
            price=as_int(row.get("price"), minimum=0),
            category=as_enum(MenuCategoryEnum, row.get("category"), MenuCategoryEnum.main_course),
            image=as_str(row.get("image")),
            is_sold_out=as_bool(row.get("is_sold_out")),
        )

    def to_row(self, include_id: bool = True) -> dict:
        row = {
            "name": self.name,
            "price": self.price,
            "category": self.category.value,
            "image": self.image,
            "is_sold_out": self.is_sold_out,
        }
        if include_id:
            row["id"] = self.id
        return row

    class Config:
        frozen = True
        populate_by_name = True
        alias_generator = to_camel
