"""
======================================================
PATH: orders/services/payments.py
======================================================
ORDER PAYMENTS (APPLICATION SERVICE)

Purpose:
- start_provider_checkout: after the order commits, ask the provider for a
  hosted checkout and store its reference + redirect URL on the Payment.
- record_payment_result: apply a verified provider callback.
- refund_order: staff refund (provider refund when the payment was captured).

Rules:
- Gateway HTTP calls never run inside a database transaction.
- Callbacks are idempotent: a Payment already PAID / REFUNDED is returned
  unchanged, whatever the callback says.
- A PAID callback moves a PENDING order to PROCESSING.
- Provider initiation failure marks the Payment FAILED; the order stays
  PENDING and can be canceled by the customer.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from orders.models import Order, Payment
from orders.services.exceptions import NotFoundError, PaymentProviderError
from orders.services.lifecycle import can_transition, validate_transition
from payments.services.gateway import (
    CONFIRMED_FAILED,
    PaymentConfirmation,
    PaymentGatewayError,
    get_payment_gateway,
)

logger = logging.getLogger(__name__)

SETTLED_STATES = {Payment.STATUS_PAID, Payment.STATUS_REFUNDED}


# ============================================================
# INITIATION
# ============================================================


def start_provider_checkout(order: Order) -> Payment:
    payment = order.payment
    if not payment.provider:
        return payment

    try:
        gateway = get_payment_gateway(payment.provider)
        handle = gateway.initiate(
            reference=order.order_number,
            amount=payment.amount,
            currency=payment.currency,
            customer_email=order.user.email,
        )
    except PaymentGatewayError:
        logger.exception(
            "Payment initiation failed",
            extra={"order_number": order.order_number, "provider": payment.provider},
        )
        payment.status = Payment.STATUS_FAILED
        payment.save(update_fields=["status", "updated_at"])
        return payment

    payment.provider_reference = handle.reference
    payment.redirect_url = handle.redirect_url
    payment.provider_payload = handle.payload
    payment.save(
        update_fields=["provider_reference", "redirect_url", "provider_payload", "updated_at"]
    )

    logger.info(
        "Payment initiated",
        extra={"order_number": order.order_number, "provider": payment.provider},
    )
    return payment


# ============================================================
# CALLBACKS
# ============================================================


@transaction.atomic
def record_payment_result(*, provider: str, confirmation: PaymentConfirmation) -> Payment:
    payment = (
        Payment.objects.select_for_update()
        .filter(provider=provider.upper(), provider_reference=confirmation.reference)
        .first()
    )
    if payment is None:
        raise NotFoundError("Payment not found")

    if payment.status in SETTLED_STATES:
        logger.info(
            "Duplicate payment callback ignored",
            extra={"reference": confirmation.reference, "status": payment.status},
        )
        return payment

    if confirmation.is_paid:
        payment.status = Payment.STATUS_PAID
        payment.paid_at = timezone.now()
    elif confirmation.status == CONFIRMED_FAILED:
        payment.status = Payment.STATUS_FAILED
    else:
        return payment

    payment.provider_payload = confirmation.payload
    payment.save(update_fields=["status", "paid_at", "provider_payload", "updated_at"])

    if payment.status == Payment.STATUS_PAID:
        order = Order.objects.select_for_update().get(pk=payment.order_id)
        if can_transition(from_status=order.status, to_status=Order.STATUS_PROCESSING):
            order.status = Order.STATUS_PROCESSING
            order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Payment callback applied",
        extra={"reference": confirmation.reference, "status": payment.status},
    )
    return payment


# ============================================================
# REFUNDS
# ============================================================


def refund_order(*, order_id, notes: str = "") -> Order:
    order = Order.objects.select_related("payment").filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")

    validate_transition(order=order, target_status=Order.STATUS_REFUNDED)

    payment = order.payment
    refund_payload = {}
    if not payment.is_cash_on_delivery and payment.status == Payment.STATUS_PAID:
        try:
            result = get_payment_gateway(payment.provider).refund(
                reference=payment.provider_reference, amount=payment.amount
            )
        except PaymentGatewayError as exc:
            raise PaymentProviderError(str(exc)) from exc
        if not result.accepted:
            raise PaymentProviderError("Payment provider declined the refund")
        refund_payload = result.payload

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order_id)
        validate_transition(order=order, target_status=Order.STATUS_REFUNDED)

        order.status = Order.STATUS_REFUNDED
        update_fields = ["status", "updated_at"]
        if notes:
            order.admin_notes = notes.strip()
            update_fields.append("admin_notes")
        order.save(update_fields=update_fields)

        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status == Payment.STATUS_PAID:
            payment.status = Payment.STATUS_REFUNDED
            if refund_payload:
                payment.provider_payload = {**payment.provider_payload, "refund": refund_payload}
            payment.save(update_fields=["status", "provider_payload", "updated_at"])

    logger.info("Order refunded", extra={"order_number": order.order_number})
    return order
