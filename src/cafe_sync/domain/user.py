from typing import Any, Mapping

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from cafe_sync.domain.coerce import as_enum, as_str
from cafe_sync.enums import RoleEnum


class User(BaseModel):
    id: str
    name: str = ""
    role: RoleEnum = RoleEnum.waiter
    pin: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        return cls(
            id=as_str(row.get("id")),
            name=as_str(row.get("name")),
            role=as_enum(RoleEnum, row.get("role"), RoleEnum.waiter),
            pin=as_str(row.get("pin")),
        )

    def to_row(self, include_id: bool = True) -> dict:
        row = {"name": self.name, "role": self.role.value, "pin": self.pin}
        if include_id:
            row["id"] = self.id
        return row

    class Config:
        frozen = True
        populate_by_name = True
        alias_generator = to_camel
