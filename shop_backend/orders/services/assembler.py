"""
======================================================
PATH: orders/services/assembler.py
======================================================
ORDER ASSEMBLER

Purpose:
- Turn checkout input (a server cart, or a client cart snapshot) into an
  OrderDraft: priced lines, subtotal, discount, surcharge, total, currency,
  payment method, order number and address references.

Rules:
- Lines come from the server cart when it has any; otherwise from the
  snapshot; otherwise the cart is empty (EmptyCartError).
- Cart lines keep the price captured when they were added.
- Snapshot lines are re-priced from the catalog unless
  CHECKOUT_TRUST_SNAPSHOT_PRICES is on.
- payment method: trimmed + uppercased, default COD, must be COD or a
  configured provider (settings.PAYMENTS).
- COD adds COD_SURCHARGE_AMOUNT on top of the discounted subtotal.
- total = max(subtotal - discount, 0) + surcharge, 2dp half-up.

Notes:
- Writes nothing. The discount check is injected: the checkout coordinator
  passes the locking redeem_discount, previews would pass evaluate_discount.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from django.conf import settings

from catalog.lines import CatalogLine, CustomLine, LineKind, LineKindError, line_kind
from catalog.models import CustomProduct, Product, ProductVariant
from catalog.services.pricing import price_snapshot
from discounts.services.evaluator import DiscountRejected, evaluate_discount
from orders.models import Payment, generate_order_number
from orders.services.exceptions import (
    CheckoutValidationError,
    DiscountNotApplicableError,
    EmptyCartError,
    NotFoundError,
    OwnershipError,
)
from users.models import Address

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# DRAFT TYPES
# ============================================================


@dataclass(frozen=True)
class LineDraft:
    kind: LineKind
    quantity: int
    price_amount: Decimal
    price_currency: str
    title: str = ""

    @property
    def product_id(self) -> Optional[uuid.UUID]:
        return self.kind.product_id if isinstance(self.kind, CatalogLine) else None

    @property
    def variant_id(self) -> Optional[uuid.UUID]:
        return self.kind.variant_id if isinstance(self.kind, CatalogLine) else None

    @property
    def custom_product_id(self) -> Optional[uuid.UUID]:
        return self.kind.custom_product_id if isinstance(self.kind, CustomLine) else None

    @property
    def line_total(self) -> Decimal:
        return _money(self.price_amount * Decimal(self.quantity))


@dataclass(frozen=True)
class AddressRef:
    """Either an existing Address owned by the user, or fields for a new one."""

    address: Optional[Address] = None
    data: Optional[dict] = None


@dataclass
class OrderDraft:
    user: object
    lines: list[LineDraft]
    subtotal_amount: Decimal
    discount_amount: Decimal
    surcharge_amount: Decimal
    total_amount: Decimal
    currency: str
    payment_method: str
    order_number: str
    shipping: AddressRef
    billing: AddressRef
    discount: Optional[object] = None
    provider: str = ""
    from_cart: bool = False


# ============================================================
# PAYMENT METHOD
# ============================================================


def allowed_payment_methods() -> set[str]:
    providers = getattr(settings, "PAYMENTS", {}) or {}
    return {Payment.METHOD_COD} | {str(key).upper() for key in providers}


def normalize_payment_method(method: Optional[str]) -> str:
    normalized = (method or "").strip().upper() or Payment.METHOD_COD
    if normalized not in allowed_payment_methods():
        raise CheckoutValidationError(f"Unsupported payment method: {normalized}")
    return normalized


def cod_surcharge(method: str) -> Decimal:
    if method != Payment.METHOD_COD:
        return Decimal("0.00")
    return _money(getattr(settings, "COD_SURCHARGE_AMOUNT", "0.00"))


# ============================================================
# LINES
# ============================================================


def _lines_from_cart(cart) -> list[LineDraft]:
    lines = []
    for line in cart.lines.select_related("product", "variant", "custom_product"):
        if line.custom_product_id:
            title = line.custom_product.title
        elif line.variant_id:
            title = f"{line.product.title} / {line.variant.title}"
        else:
            title = line.product.title

        lines.append(
            LineDraft(
                kind=line.kind,
                quantity=int(line.quantity),
                price_amount=_money(line.price_amount),
                price_currency=line.price_currency,
                title=title,
            )
        )
    return lines


def _snapshot_quantity(value) -> int:
    if isinstance(value, bool):
        raise CheckoutValidationError("Quantity must be a whole number")
    try:
        qty = int(value)
    except (TypeError, ValueError) as exc:
        raise CheckoutValidationError("Quantity must be a whole number") from exc
    if qty <= 0:
        raise CheckoutValidationError("Quantity must be positive")
    return qty


def _line_from_snapshot(item: dict, *, trust_prices: bool) -> LineDraft:
    try:
        kind = line_kind(
            product_id=item.get("product_id"),
            variant_id=item.get("variant_id"),
            custom_product_id=item.get("custom_product_id"),
        )
    except LineKindError as exc:
        raise CheckoutValidationError(str(exc)) from exc

    qty = _snapshot_quantity(item.get("quantity", 1))

    product = variant = custom_product = None
    if isinstance(kind, CustomLine):
        custom_product = CustomProduct.objects.filter(pk=kind.custom_product_id).first()
        if custom_product is None:
            raise NotFoundError("Custom product not found")
        title = custom_product.title
    else:
        product = Product.objects.filter(pk=kind.product_id).first()
        if product is None:
            raise NotFoundError("Product not found")
        title = product.title
        if kind.variant_id:
            variant = ProductVariant.objects.filter(pk=kind.variant_id).first()
            if variant is None or variant.product_id != product.id:
                raise NotFoundError("Invalid variant")
            title = f"{product.title} / {variant.title}"

    amount, currency = price_snapshot(
        product=product, variant=variant, custom_product=custom_product
    )
    if trust_prices and item.get("price_amount") is not None:
        amount = _money(item["price_amount"])
        currency = (item.get("price_currency") or currency).strip().upper()
        if amount < Decimal("0.00"):
            raise CheckoutValidationError("Line price cannot be negative")

    return LineDraft(
        kind=kind,
        quantity=qty,
        price_amount=amount,
        price_currency=currency,
        title=title,
    )


def _lines_from_snapshot(snapshot) -> list[LineDraft]:
    trust_prices = bool(getattr(settings, "CHECKOUT_TRUST_SNAPSHOT_PRICES", False))
    return [_line_from_snapshot(item, trust_prices=trust_prices) for item in snapshot]


# ============================================================
# ADDRESSES
# ============================================================


def _address_ref(*, user, address_id, data, label: str) -> Optional[AddressRef]:
    if address_id:
        address = Address.objects.filter(pk=address_id).first()
        if address is None:
            raise NotFoundError(f"{label} address not found")
        if address.user_id != user.pk:
            raise OwnershipError(f"{label} address belongs to a different user")
        return AddressRef(address=address)

    if data:
        return AddressRef(data=dict(data))

    return None


# ============================================================
# ASSEMBLY
# ============================================================


def assemble_order(
    *,
    user,
    cart=None,
    cart_snapshot=None,
    shipping_address: Optional[dict] = None,
    shipping_address_id=None,
    billing_address: Optional[dict] = None,
    billing_address_id=None,
    payment_method: Optional[str] = None,
    discount_code: Optional[str] = None,
    evaluate: Callable = evaluate_discount,
    now=None,
) -> OrderDraft:
    method = normalize_payment_method(payment_method)

    from_cart = cart is not None and cart.lines.exists()
    if from_cart:
        lines = _lines_from_cart(cart)
    elif cart_snapshot:
        lines = _lines_from_snapshot(cart_snapshot)
    else:
        raise EmptyCartError("Cart is empty")

    currencies = {line.price_currency for line in lines}
    if len(currencies) > 1:
        raise CheckoutValidationError("All lines must share one currency")
    currency = currencies.pop()

    subtotal = _money(sum((line.line_total for line in lines), Decimal("0.00")))

    discount = None
    discount_amount = Decimal("0.00")
    discounted = subtotal
    if discount_code and str(discount_code).strip():
        try:
            evaluation = evaluate(code=discount_code, order_subtotal=subtotal, now=now)
            evaluation.raise_if_invalid()
        except DiscountRejected as exc:
            raise DiscountNotApplicableError(exc.message, code=exc.code) from exc
        discount = evaluation.discount
        discount_amount = evaluation.amount
        discounted = evaluation.discounted_subtotal

    surcharge = cod_surcharge(method)

    shipping = _address_ref(
        user=user, address_id=shipping_address_id, data=shipping_address, label="Shipping"
    )
    if shipping is None:
        raise CheckoutValidationError("Shipping address is required")

    billing = _address_ref(
        user=user, address_id=billing_address_id, data=billing_address, label="Billing"
    )

    return OrderDraft(
        user=user,
        lines=lines,
        subtotal_amount=subtotal,
        discount=discount,
        discount_amount=discount_amount,
        surcharge_amount=surcharge,
        total_amount=_money(discounted + surcharge),
        currency=currency,
        payment_method=method,
        provider="" if method == Payment.METHOD_COD else method,
        order_number=generate_order_number(now),
        shipping=shipping,
        billing=billing or shipping,
        from_cart=from_cart,
    )
