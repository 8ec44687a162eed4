from sqlalchemy import Column, String, Enum

from cafe_sync.db.base import Base
from cafe_sync.enums import RoleEnum


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(100), nullable=False, default="")
    role = Column(Enum(RoleEnum, name="user_role", values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=RoleEnum.waiter)
    pin = Column(String(12), nullable=False, default="")
