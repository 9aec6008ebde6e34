# orders/views/__init__.py

from .orders import OrderCancelView, OrderDetailView, OrderListCreateView
from .staff import (
    AdminOrderDetailView,
    AdminOrderListView,
    AdminOrderRefundView,
    AdminOrderStatusView,
)

__all__ = [
    "OrderListCreateView",
    "OrderDetailView",
    "OrderCancelView",
    "AdminOrderListView",
    "AdminOrderDetailView",
    "AdminOrderStatusView",
    "AdminOrderRefundView",
]
