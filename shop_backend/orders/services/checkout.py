"""
======================================================
PATH: orders/services/checkout.py
======================================================
CHECKOUT COORDINATOR (APPLICATION SERVICE)

Purpose:
- place_order: turn a cart (or a cart snapshot) into an Order, OrderItems and
  a Payment, move inventory, redeem the discount and consume the cart.
- cancel_order: customer / staff cancellation with inventory restore.
- update_order_status: staff lifecycle moves (tracking, notes).

Hard rules:
- Everything between locking the cart and clearing it is ONE transaction.
  Any failure (address, order row, items, stock, payment, cart clear) rolls
  all of it back: no order, no stock movement, no discount use, cart intact.
- Cart row is locked (SELECT ... FOR UPDATE) so two concurrent checkouts of
  the same cart serialize; the second finds it empty.
- Discount row is locked by redeem_discount before the order row referencing
  it is written, so a usage limit of N admits exactly N orders.
- Stock decrement is conditional; a losing concurrent buyer gets
  ConcurrencyConflict (409) instead of driving stock negative.

Notes:
- Side effects (confirmation e-mail, hosted payment initiation) run only
  after commit.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Optional

from django.db import transaction
from django.utils import timezone

from cart.models import Cart
from cart.services.cart_service import clear_cart
from catalog.services.inventory import (
    InsufficientInventoryError,
    decrement_inventory,
    increment_inventory,
)
from discounts.services.evaluator import redeem_discount
from orders.models import Order, OrderItem, Payment
from orders.services.assembler import AddressRef, OrderDraft, assemble_order
from orders.services.exceptions import (
    ConcurrencyConflict,
    InvalidOrderTransitionError,
    NotFoundError,
    OrderNotCancelableError,
    OwnershipError,
)
from orders.services.lifecycle import is_cancelable, validate_transition
from orders.tasks import queue_order_confirmation
from users.models import Address

logger = logging.getLogger(__name__)

OUT_OF_STOCK_MESSAGE = "Some items just went out of stock, please review your cart and try again"


# ============================================================
# STEPS (each runs inside place_order's transaction)
# ============================================================


def _lock_cart(*, user, cart_id) -> Optional[Cart]:
    qs = Cart.objects.select_for_update()

    if cart_id:
        cart = qs.filter(pk=cart_id).first()
        if cart is None:
            raise NotFoundError("Cart not found")
        if cart.user_id is not None and cart.user_id != user.pk:
            raise OwnershipError("Cart belongs to a different user")
        return cart

    return qs.filter(user=user).order_by("-created_at").first()


def _resolve_address(*, user, ref: AddressRef) -> Address:
    if ref.address is not None:
        return ref.address
    return Address.objects.create(user=user, **ref.data)


def _create_order(*, draft: OrderDraft, shipping: Address, billing: Address) -> Order:
    return Order.objects.create(
        order_number=draft.order_number,
        user=draft.user,
        status=Order.STATUS_PENDING,
        payment_method=draft.payment_method,
        subtotal_amount=draft.subtotal_amount,
        discount_amount=draft.discount_amount,
        surcharge_amount=draft.surcharge_amount,
        total_amount=draft.total_amount,
        total_currency=draft.currency,
        applied_discount=draft.discount,
        shipping_address=shipping,
        billing_address=billing,
    )


def _create_order_items(*, order: Order, draft: OrderDraft) -> list[OrderItem]:
    return [
        OrderItem.objects.create(
            order=order,
            product_id=line.product_id,
            variant_id=line.variant_id,
            custom_product_id=line.custom_product_id,
            title=line.title,
            quantity=line.quantity,
            price_amount=line.price_amount,
            price_currency=line.price_currency,
        )
        for line in draft.lines
    ]


def _reserve_inventory(items: list[OrderItem]) -> None:
    for item in items:
        try:
            variant_id = decrement_inventory(item)
        except InsufficientInventoryError as exc:
            raise ConcurrencyConflict(OUT_OF_STOCK_MESSAGE) from exc

        if variant_id is not None:
            item.inventory_variant_id = variant_id
            item.save(update_fields=["inventory_variant"])


def _create_payment(*, order: Order, draft: OrderDraft) -> Payment:
    return Payment.objects.create(
        order=order,
        method=draft.payment_method,
        provider=draft.provider,
        status=Payment.STATUS_INITIATED,
        amount=draft.total_amount,
        currency=draft.currency,
    )


# ============================================================
# PLACE ORDER
# ============================================================


@transaction.atomic
def place_order(
    *,
    user,
    cart_id=None,
    cart_snapshot=None,
    shipping_address: Optional[dict] = None,
    shipping_address_id=None,
    billing_address: Optional[dict] = None,
    billing_address_id=None,
    payment_method: Optional[str] = None,
    discount_code: Optional[str] = None,
    now=None,
) -> Order:
    cart = _lock_cart(user=user, cart_id=cart_id)

    draft = assemble_order(
        user=user,
        cart=cart,
        cart_snapshot=cart_snapshot,
        shipping_address=shipping_address,
        shipping_address_id=shipping_address_id,
        billing_address=billing_address,
        billing_address_id=billing_address_id,
        payment_method=payment_method,
        discount_code=discount_code,
        evaluate=redeem_discount,
        now=now,
    )

    shipping = _resolve_address(user=user, ref=draft.shipping)
    if draft.billing is draft.shipping:
        billing = shipping
    else:
        billing = _resolve_address(user=user, ref=draft.billing)

    order = _create_order(draft=draft, shipping=shipping, billing=billing)
    items = _create_order_items(order=order, draft=draft)
    _reserve_inventory(items)
    _create_payment(order=order, draft=draft)

    if cart is not None:
        clear_cart(cart)

    transaction.on_commit(partial(queue_order_confirmation, order.id))

    logger.info(
        "Order placed",
        extra={
            "order_number": order.order_number,
            "user_id": str(user.pk),
            "total": str(order.total_amount),
            "payment_method": order.payment_method,
            "lines": len(items),
        },
    )
    return order


# ============================================================
# CANCEL / STATUS
# ============================================================


def _locked_order(*, order_id, user=None) -> Order:
    qs = Order.objects.select_for_update()
    if user is not None:
        qs = qs.filter(user=user)

    order = qs.filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


@transaction.atomic
def cancel_order(*, order_id, user=None, reason: Optional[str] = None) -> Order:
    """
    user=None is the staff path (any order); otherwise only the user's own.
    Restores inventory for every catalog line and records the reason.
    """
    order = _locked_order(order_id=order_id, user=user)

    if not is_cancelable(order):
        raise OrderNotCancelableError("Cannot cancel order in its current status")

    for item in order.items.all():
        # Untracked lines (custom, variantless) took nothing.
        if item.inventory_variant_id is None:
            continue
        increment_inventory(item, variant_id=item.inventory_variant_id)

    order.status = Order.STATUS_CANCELED
    order.cancel_reason = (reason or "").strip() or "Canceled by customer"
    order.canceled_at = timezone.now()
    order.save(update_fields=["status", "cancel_reason", "canceled_at", "updated_at"])

    logger.info(
        "Order canceled",
        extra={"order_number": order.order_number, "by_staff": user is None},
    )
    return order


@transaction.atomic
def update_order_status(
    *,
    order_id,
    status: str,
    tracking_number: Optional[str] = None,
    tracking_company: Optional[str] = None,
    notes: Optional[str] = None,
) -> Order:
    """
    Staff status update. CANCELED goes through cancel_order so stock is
    restored; REFUNDED is handled by orders.services.payments.refund_order.
    """
    target = (status or "").strip().upper()

    if target == Order.STATUS_REFUNDED:
        raise InvalidOrderTransitionError("Refunds go through the refund endpoint")

    if target == Order.STATUS_CANCELED:
        order = cancel_order(order_id=order_id, reason=notes or "Canceled by store")
    else:
        order = _locked_order(order_id=order_id)
        validate_transition(order=order, target_status=target)
        order.status = target

    update_fields = ["status", "updated_at"]
    if tracking_number is not None:
        order.tracking_number = tracking_number.strip()
        update_fields.append("tracking_number")
    if tracking_company is not None:
        order.tracking_company = tracking_company.strip()
        update_fields.append("tracking_company")
    if notes:
        order.admin_notes = notes.strip()
        update_fields.append("admin_notes")

    order.save(update_fields=update_fields)

    logger.info(
        "Order status updated",
        extra={"order_number": order.order_number, "status": order.status},
    )
    return order
