# cart/views.py

"""
CART API VIEWS

Endpoints (AllowAny; JWT optional):
- GET    /api/cart/                    current cart (created on first use)
- POST   /api/cart/lines/              add a line
- PATCH  /api/cart/lines/<line_id>/    set quantity (0 removes the line)
- DELETE /api/cart/lines/<line_id>/    remove a line

Anonymous carts are addressed by `cartId` (body / query) or the cartId cookie.
"""

from __future__ import annotations

import uuid

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.responses import error_response
from cart.serializers import (
    AddCartLineInputSerializer,
    CartSerializer,
    UpdateCartLineInputSerializer,
)
from cart.services.cart_service import (
    CartItemNotFoundError,
    CartLineNotFoundError,
    CartNotFoundError,
    CartOwnershipError,
    CartValidationError,
    add_line,
    remove_line,
    resolve_cart,
    update_line_quantity,
)
from catalog.services.inventory import VariantUnavailableError

CART_COOKIE = "cartId"
CART_COOKIE_MAX_AGE = 30 * 24 * 60 * 60

CART_ID_PARAM = OpenApiParameter(
    name="cartId", type=str, location=OpenApiParameter.QUERY, required=False
)


# =====================================================
# HELPERS
# =====================================================


def _parse_uuid(raw):
    if not raw:
        return None
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        return None


def _cart_id_from_request(request, explicit=None):
    return (
        _parse_uuid(explicit)
        or _parse_uuid(request.query_params.get("cartId"))
        or _parse_uuid(request.COOKIES.get(CART_COOKIE))
    )


def _cart_response(request, cart, *, http_status=status.HTTP_200_OK):
    response = Response(CartSerializer(cart).data, status=http_status)
    if not request.user.is_authenticated:
        response.set_cookie(
            CART_COOKIE,
            str(cart.id),
            max_age=CART_COOKIE_MAX_AGE,
            httponly=True,
            secure=not settings.DEBUG,
            samesite="Lax",
        )
    return response


def _cart_error(exc):
    if isinstance(exc, CartOwnershipError):
        return error_response(code="FORBIDDEN", message=str(exc), http_status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, (CartNotFoundError, CartLineNotFoundError, CartItemNotFoundError)):
        return error_response(code="NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, VariantUnavailableError):
        return error_response(
            code="OUT_OF_STOCK", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST
        )
    return error_response(
        code="VALIDATION_ERROR", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST
    )


CART_ERRORS = (
    CartOwnershipError,
    CartNotFoundError,
    CartLineNotFoundError,
    CartItemNotFoundError,
    CartValidationError,
    VariantUnavailableError,
)


# =====================================================
# VIEWS
# =====================================================


class CartView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[CART_ID_PARAM],
        responses={200: CartSerializer, 403: OpenApiResponse(description="Not your cart")},
        tags=["Cart"],
    )
    def get(self, request):
        try:
            cart = resolve_cart(
                user=request.user, cart_id=_cart_id_from_request(request), create=True
            )
        except CART_ERRORS as exc:
            return _cart_error(exc)
        return _cart_response(request, cart)


class CartLinesView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        request=AddCartLineInputSerializer,
        responses={
            200: CartSerializer,
            400: OpenApiResponse(description="Invalid line or out of stock"),
            403: OpenApiResponse(description="Not your cart"),
            404: OpenApiResponse(description="Product / variant / custom product not found"),
        },
        tags=["Cart"],
    )
    def post(self, request):
        s = AddCartLineInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            cart = resolve_cart(
                user=request.user,
                cart_id=_cart_id_from_request(request, data.get("cartId")),
                create=True,
            )
            cart = add_line(
                cart=cart,
                quantity=data.get("quantity", 1),
                product_id=data.get("productId"),
                variant_id=data.get("variantId"),
                custom_product_id=data.get("customProductId"),
            )
        except CART_ERRORS as exc:
            return _cart_error(exc)

        return _cart_response(request, cart)


class CartLineDetailView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        request=UpdateCartLineInputSerializer,
        responses={200: CartSerializer, 404: OpenApiResponse(description="Line not found")},
        tags=["Cart"],
    )
    def patch(self, request, line_id):
        s = UpdateCartLineInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            cart = resolve_cart(
                user=request.user,
                cart_id=_cart_id_from_request(request, data.get("cartId")),
            )
            cart = update_line_quantity(cart=cart, line_id=line_id, quantity=data["quantity"])
        except CART_ERRORS as exc:
            return _cart_error(exc)

        return _cart_response(request, cart)

    put = patch

    @extend_schema(
        parameters=[CART_ID_PARAM],
        responses={200: CartSerializer, 404: OpenApiResponse(description="Line not found")},
        tags=["Cart"],
    )
    def delete(self, request, line_id):
        try:
            cart = resolve_cart(user=request.user, cart_id=_cart_id_from_request(request))
            cart = remove_line(cart=cart, line_id=line_id)
        except CART_ERRORS as exc:
            return _cart_error(exc)

        return _cart_response(request, cart)
