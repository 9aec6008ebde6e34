"""
======================================================
PATH: orders/services/exceptions.py
======================================================
CHECKOUT ERROR TAXONOMY

Every error a checkout / order operation raises to the HTTP layer carries a
stable machine code and the status it maps to. Views translate them with
backend.responses.error_response; nothing below the view layer knows about
HTTP beyond these two attributes.
"""

from __future__ import annotations

from typing import Optional


class CheckoutError(Exception):
    code = "CHECKOUT_FAILED"
    http_status = 400

    def __init__(self, message: str = "", *, code: Optional[str] = None):
        self.message = message or self.__class__.__name__
        if code:
            self.code = code
        super().__init__(self.message)


class CheckoutValidationError(CheckoutError):
    code = "VALIDATION_ERROR"
    http_status = 400


class NotFoundError(CheckoutError):
    code = "NOT_FOUND"
    http_status = 404


class OwnershipError(CheckoutError):
    code = "FORBIDDEN"
    http_status = 403


# ============================================================
# BUSINESS RULES
# ============================================================


class BusinessRuleViolation(CheckoutError):
    code = "BUSINESS_RULE_VIOLATION"
    http_status = 400


class EmptyCartError(BusinessRuleViolation):
    code = "EMPTY_CART"


class DiscountNotApplicableError(BusinessRuleViolation):
    code = "DISCOUNT_INVALID"


class OrderNotCancelableError(BusinessRuleViolation):
    code = "ORDER_NOT_CANCELABLE"


class InvalidOrderTransitionError(BusinessRuleViolation):
    code = "INVALID_STATUS_TRANSITION"


# ============================================================
# CONCURRENCY / EXTERNAL
# ============================================================


class ConcurrencyConflict(CheckoutError):
    code = "CONFLICT"
    http_status = 409


class PaymentProviderError(CheckoutError):
    code = "PAYMENT_PROVIDER_ERROR"
    http_status = 502
