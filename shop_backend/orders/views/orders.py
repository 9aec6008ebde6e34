# orders/views/orders.py

"""
CUSTOMER ORDER API

- POST /api/orders/                 place an order (rate limited per user)
- GET  /api/orders/                 own orders, newest first (paginated)
- GET  /api/orders/<id>/            one own order
- POST /api/orders/<id>/cancel/     cancel own PENDING / PROCESSING order

Error body: {"error": {"code", "message"}}.
"""

from __future__ import annotations

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.responses import error_response
from orders.models import Order
from orders.serializers import CancelOrderInputSerializer, CreateOrderInputSerializer, OrderSerializer
from orders.services.checkout import cancel_order, place_order
from orders.services.exceptions import CheckoutError
from orders.services.payments import start_provider_checkout
from orders.throttling import OrderCreateThrottle
from orders.views.errors import checkout_error_response, infrastructure_error_response

ORDER_RELATIONS = ("applied_discount", "shipping_address", "billing_address", "payment", "user")


def order_queryset():
    return Order.objects.select_related(*ORDER_RELATIONS).prefetch_related("items")


class OrderListCreateView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    filterset_fields = ["status"]

    def get_queryset(self):
        return order_queryset().filter(user=self.request.user)

    def get_throttles(self):
        if self.request.method == "POST":
            return [OrderCreateThrottle()]
        return super().get_throttles()

    @extend_schema(tags=["Orders"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        request=CreateOrderInputSerializer,
        responses={
            201: OrderSerializer,
            400: OpenApiResponse(description="Invalid input, empty cart or discount rejected"),
            403: OpenApiResponse(description="Cart or address belongs to another user"),
            404: OpenApiResponse(description="Cart, address or product not found"),
            409: OpenApiResponse(description="Stock changed while checking out"),
            429: OpenApiResponse(description="Too many orders"),
        },
        description="Create an order from the caller's cart (or a cart snapshot).",
        tags=["Orders"],
    )
    def post(self, request):
        s = CreateOrderInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            order = place_order(
                user=request.user,
                cart_id=data.get("cartId"),
                cart_snapshot=data.get("cartSnapshot"),
                shipping_address=data.get("shippingAddress"),
                shipping_address_id=data.get("shippingAddressId"),
                billing_address=data.get("billingAddress"),
                billing_address_id=data.get("billingAddressId"),
                payment_method=data.get("paymentMethod"),
                discount_code=data.get("discountCode"),
            )
        except CheckoutError as exc:
            return checkout_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(
                exc, action="Order creation", user_id=str(request.user.pk)
            )

        order = order_queryset().get(pk=order.pk)
        if order.payment.provider:
            start_provider_checkout(order)
            order = order_queryset().get(pk=order.pk)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        responses={200: OrderSerializer, 404: OpenApiResponse(description="Order not found")},
        tags=["Orders"],
    )
    def get(self, request, order_id):
        order = order_queryset().filter(pk=order_id, user=request.user).first()
        if order is None:
            return error_response(
                code="NOT_FOUND", message="Order not found", http_status=status.HTTP_404_NOT_FOUND
            )
        return Response(OrderSerializer(order).data)


class OrderCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=CancelOrderInputSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Order can no longer be canceled"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Orders"],
    )
    def post(self, request, order_id):
        s = CancelOrderInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            order = cancel_order(
                order_id=order_id,
                user=request.user,
                reason=s.validated_data.get("reason"),
            )
        except CheckoutError as exc:
            return checkout_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(exc, action="Order cancellation", order_id=str(order_id))

        return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)
