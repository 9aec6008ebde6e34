# orders/views/staff.py

"""
STAFF ORDER API (IsAdminUser)

- GET   /api/orders/admin/                  all orders, filterable
- GET   /api/orders/admin/<id>/             one order
- PATCH /api/orders/admin/<id>/status/      lifecycle move + tracking / notes
- POST  /api/orders/admin/<id>/refund/      refund (provider refund when captured)
"""

from __future__ import annotations

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import (
    AdminOrderSerializer,
    OrderStatusUpdateInputSerializer,
    RefundOrderInputSerializer,
)
from orders.services.checkout import update_order_status
from orders.services.exceptions import CheckoutError
from orders.services.payments import refund_order
from orders.views.errors import checkout_error_response, infrastructure_error_response
from orders.views.orders import order_queryset


class AdminOrderListView(generics.ListAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    filterset_class = OrderFilter

    def get_queryset(self):
        return order_queryset()

    @extend_schema(tags=["Orders (staff)"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminOrderDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = AdminOrderSerializer
    lookup_url_kwarg = "order_id"

    def get_queryset(self):
        return order_queryset()

    @extend_schema(tags=["Orders (staff)"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminOrderStatusView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        request=OrderStatusUpdateInputSerializer,
        responses={
            200: AdminOrderSerializer,
            400: OpenApiResponse(description="Transition not allowed"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Orders (staff)"],
    )
    def patch(self, request, order_id):
        s = OrderStatusUpdateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            if data["status"] == Order.STATUS_REFUNDED:
                order = refund_order(order_id=order_id, notes=data.get("notes", ""))
            else:
                order = update_order_status(
                    order_id=order_id,
                    status=data["status"],
                    tracking_number=data.get("trackingNumber"),
                    tracking_company=data.get("trackingCompany"),
                    notes=data.get("notes"),
                )
        except CheckoutError as exc:
            return checkout_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, action="Order status update", order_id=str(order_id))

        return Response(AdminOrderSerializer(order_queryset().get(pk=order.pk)).data)


class AdminOrderRefundView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(
        request=RefundOrderInputSerializer,
        responses={
            200: AdminOrderSerializer,
            400: OpenApiResponse(description="Order cannot be refunded"),
            404: OpenApiResponse(description="Order not found"),
            502: OpenApiResponse(description="Payment provider refused or unreachable"),
        },
        tags=["Orders (staff)"],
    )
    def post(self, request, order_id):
        s = RefundOrderInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = refund_order(order_id=order_id, notes=s.validated_data.get("notes", ""))
        except CheckoutError as exc:
            return checkout_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, action="Order refund", order_id=str(order_id))

        return Response(AdminOrderSerializer(order_queryset().get(pk=order.pk)).data)
