# orders/urls.py

from django.urls import path

from orders.views import (
    AdminOrderDetailView,
    AdminOrderListView,
    AdminOrderRefundView,
    AdminOrderStatusView,
    OrderCancelView,
    OrderDetailView,
    OrderListCreateView,
)

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="order-list-create"),
    path("admin/", AdminOrderListView.as_view(), name="admin-order-list"),
    path("admin/<uuid:order_id>/", AdminOrderDetailView.as_view(), name="admin-order-detail"),
    path("admin/<uuid:order_id>/status/", AdminOrderStatusView.as_view(), name="admin-order-status"),
    path("admin/<uuid:order_id>/refund/", AdminOrderRefundView.as_view(), name="admin-order-refund"),
    path("<uuid:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<uuid:order_id>/cancel/", OrderCancelView.as_view(), name="order-cancel"),
]
