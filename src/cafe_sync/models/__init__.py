from .user import User
from .menu_item import MenuItem
from .order import Order

__all__ = [
    "User",
    "MenuItem",
    "Order",
]
