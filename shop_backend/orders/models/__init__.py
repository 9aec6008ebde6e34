# orders/models/__init__.py

"""
ORDERS MODELS PACKAGE EXPORTS
"""

from .order import Order, generate_order_number
from .order_item import OrderItem
from .payment import Payment

__all__ = [
    "Order",
    "OrderItem",
    "Payment",
    "generate_order_number",
]
