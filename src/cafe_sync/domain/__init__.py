from .menu_item import MenuItem
from .order import Order, OrderItem
from .user import User

__all__ = [
    "MenuItem",
    "Order",
    "OrderItem",
    "User",
]
