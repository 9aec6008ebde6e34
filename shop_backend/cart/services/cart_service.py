# cart/services/cart_service.py

"""
CART SERVICE

Purpose:
- Resolve the caller's cart (by id / cookie, or the user's own cart).
- Add / update / remove lines with server-owned price snapshots.
- Keep Cart.total_quantity equal to the sum of line quantities.

Rules:
- A line needs a product or a custom product.
- A named variant must belong to the product, be available for sale and
  have at least the requested quantity in stock.
- Identical lines (same product, variant and custom product) merge.
- Updating a line to quantity 0 deletes it.

Notes:
- The stock check here is advisory. Checkout re-checks with a conditional
  decrement inside its own transaction.
- Concurrent add/clear on the same cart is not serialized beyond each
  operation's own transaction.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from django.db import transaction
from django.db.models import Sum

from cart.models import Cart, CartLine
from catalog.models import CustomProduct, Product, ProductVariant
from catalog.services.inventory import check_availability
from catalog.services.pricing import price_snapshot

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================


class CartError(Exception):
    pass


class CartNotFoundError(CartError):
    pass


class CartOwnershipError(CartError):
    pass


class CartLineNotFoundError(CartError):
    pass


class CartItemNotFoundError(CartError):
    """Referenced product / variant / custom product does not exist."""


class CartValidationError(CartError):
    pass


# ============================================================
# CART RESOLUTION
# ============================================================


def _authenticated(user) -> bool:
    return bool(user is not None and getattr(user, "is_authenticated", False))


def resolve_cart(*, user, cart_id: Optional[uuid.UUID], create: bool = False) -> Cart:
    """
    Find the cart a request is talking about.

    - cart_id given: that cart; 403 if it belongs to someone else; an anonymous
      cart is claimed by an authenticated caller.
    - no cart_id (or unknown id with create=True): the user's newest cart, or a
      fresh one.
    """
    if cart_id:
        cart = Cart.objects.filter(pk=cart_id).first()
        if cart is not None:
            if not cart.is_accessible_by(user):
                raise CartOwnershipError("Cart belongs to a different user")
            if cart.user_id is None and _authenticated(user):
                cart.user = user
                cart.save(update_fields=["user", "updated_at"])
            return cart
        if not create:
            raise CartNotFoundError("Cart not found")

    if _authenticated(user):
        cart = Cart.objects.filter(user=user).order_by("-created_at").first()
        if cart is not None:
            return cart
        if not create:
            raise CartNotFoundError("Cart not found")
        return Cart.objects.create(user=user)

    if not create:
        raise CartNotFoundError("Cart not found")
    return Cart.objects.create()


def recalculate_total_quantity(cart: Cart) -> Cart:
    total = cart.lines.aggregate(total=Sum("quantity")).get("total")
    cart.total_quantity = int(total or 0)
    cart.save(update_fields=["total_quantity", "updated_at"])
    return cart


# ============================================================
# LINE OPERATIONS
# ============================================================


def _to_int_qty(value, *, allow_zero: bool = False) -> int:
    if isinstance(value, bool):
        raise CartValidationError("Quantity must be a whole number")
    try:
        qty = int(value)
    except (TypeError, ValueError) as exc:
        raise CartValidationError("Quantity must be a whole number") from exc

    if qty < 0 or (qty == 0 and not allow_zero):
        raise CartValidationError("Quantity must be positive")
    return qty


@transaction.atomic
def add_line(
    *,
    cart: Cart,
    quantity=1,
    product_id=None,
    variant_id=None,
    custom_product_id=None,
) -> Cart:
    if not product_id and not custom_product_id:
        raise CartValidationError("Either Product ID or Custom Product ID is required")
    if product_id and custom_product_id:
        raise CartValidationError("A line cannot reference both a product and a custom product")
    if variant_id and not product_id:
        raise CartValidationError("A variant line must also reference its product")

    qty = _to_int_qty(quantity)

    product = variant = custom_product = None

    if product_id:
        product = Product.objects.filter(pk=product_id, is_active=True).first()
        if product is None:
            raise CartItemNotFoundError("Product not found")

        if variant_id:
            variant = ProductVariant.objects.filter(pk=variant_id).first()
            if variant is None or variant.product_id != product.id:
                raise CartItemNotFoundError("Invalid variant")

            check_availability(variant=variant, quantity=qty)

    if custom_product_id:
        custom_product = CustomProduct.objects.filter(pk=custom_product_id).first()
        if custom_product is None:
            raise CartItemNotFoundError("Custom product not found")

    cart = Cart.objects.select_for_update().get(pk=cart.pk)

    existing = (
        cart.lines.filter(
            product=product,
            variant=variant,
            custom_product=custom_product,
        )
        .select_for_update()
        .first()
    )

    if existing is not None:
        existing.quantity = int(existing.quantity) + qty
        existing.save()
    else:
        amount, currency = price_snapshot(
            product=product, variant=variant, custom_product=custom_product
        )
        CartLine.objects.create(
            cart=cart,
            product=product,
            variant=variant,
            custom_product=custom_product,
            quantity=qty,
            price_amount=amount,
            price_currency=currency,
        )

    return recalculate_total_quantity(cart)


@transaction.atomic
def update_line_quantity(*, cart: Cart, line_id, quantity) -> Cart:
    qty = _to_int_qty(quantity, allow_zero=True)

    cart = Cart.objects.select_for_update().get(pk=cart.pk)
    line = cart.lines.filter(pk=line_id).first()
    if line is None:
        raise CartLineNotFoundError("Cart line not found")

    if qty == 0:
        line.delete()
    else:
        line.quantity = qty
        line.save()

    return recalculate_total_quantity(cart)


@transaction.atomic
def remove_line(*, cart: Cart, line_id) -> Cart:
    cart = Cart.objects.select_for_update().get(pk=cart.pk)
    deleted, _ = cart.lines.filter(pk=line_id).delete()
    if not deleted:
        raise CartLineNotFoundError("Cart line not found")

    return recalculate_total_quantity(cart)


def clear_cart(cart: Cart) -> None:
    """
    Consume a cart after a successful checkout. Runs inside the caller's
    transaction.
    """
    cart.lines.all().delete()
    cart.total_quantity = 0
    cart.save(update_fields=["total_quantity", "updated_at"])
    logger.info("Cart cleared", extra={"cart_id": str(cart.id)})
