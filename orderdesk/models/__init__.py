"""Database models"""

from orderdesk.models.restaurant import Restaurant, StaffUser
from orderdesk.models.order import Order, OrderItem
from orderdesk.models.event import OrderEvent

__all__ = [
    "Restaurant",
    "StaffUser",
    "Order",
    "OrderItem",
    "OrderEvent",
]
