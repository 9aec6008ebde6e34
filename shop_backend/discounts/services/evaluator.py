# discounts/services/evaluator.py

"""
DISCOUNT EVALUATOR

Purpose:
- Decide whether a code applies to an order subtotal, and by how much.
- Shared by the checkout-page preview (POST /discount/validate/) and by
  checkout itself, so a code cannot look valid in preview and fail at commit
  for a different reason (or the other way round).

Rules (in order):
1) code is trimmed + uppercased; missing / inactive / outside its window
   -> "Invalid or expired discount code"
2) subtotal below min_order_amount -> "Minimum order amount for this discount is X"
3) usage_limit set and orders already referencing it >= usage_limit
   -> "Discount code usage limit has been reached"

Amounts:
- PERCENTAGE: subtotal * value / 100, 2dp half-up
- FIXED: min(value, subtotal)
- discounted subtotal: max(subtotal - amount, 0)

Notes:
- evaluate_discount() is read-only and takes no locks (preview).
- redeem_discount() runs the same rules with the Discount row locked
  (SELECT ... FOR UPDATE) and must be called inside the checkout transaction,
  before the order row referencing the discount is inserted.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.utils import timezone

from discounts.models import Discount, normalize_code

TWOPLACES = Decimal("0.01")

INVALID_CODE_MESSAGE = "Invalid or expired discount code"
USAGE_LIMIT_MESSAGE = "Discount code usage limit has been reached"
MISSING_CODE_MESSAGE = "Discount code is required"


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# RESULT + ERRORS
# ============================================================


class DiscountRejected(Exception):
    def __init__(self, message: str, *, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


@dataclass(frozen=True)
class DiscountEvaluation:
    valid: bool
    discount: Optional[Discount] = None
    amount: Decimal = Decimal("0.00")
    subtotal: Decimal = Decimal("0.00")
    reason: str = ""
    error_code: str = ""

    @property
    def discounted_subtotal(self) -> Decimal:
        return apply_discount(self.subtotal, self.amount)

    def raise_if_invalid(self) -> "DiscountEvaluation":
        if not self.valid:
            raise DiscountRejected(self.reason, code=self.error_code)
        return self


def _rejected(reason: str, error_code: str, subtotal: Decimal, discount=None):
    return DiscountEvaluation(
        valid=False,
        discount=discount,
        subtotal=subtotal,
        reason=reason,
        error_code=error_code,
    )


# ============================================================
# MATH
# ============================================================


def compute_discount_amount(*, discount_type: str, value, subtotal) -> Decimal:
    subtotal = _money(subtotal)
    value = _money(value)

    if subtotal <= Decimal("0.00") or value <= Decimal("0.00"):
        return Decimal("0.00")

    if discount_type == Discount.Type.PERCENTAGE:
        return min(_money(subtotal * value / Decimal("100")), subtotal)

    if discount_type == Discount.Type.FIXED:
        return min(value, subtotal)

    raise ValueError(f"Unknown discount type: {discount_type}")


def apply_discount(subtotal, amount) -> Decimal:
    return max(_money(subtotal) - _money(amount), Decimal("0.00"))


# ============================================================
# RULES
# ============================================================


def _evaluate(discount: Optional[Discount], subtotal: Decimal, now) -> DiscountEvaluation:
    if discount is None or not discount.active:
        return _rejected(INVALID_CODE_MESSAGE, "DISCOUNT_INVALID", subtotal, discount)

    if discount.starts_at and now < discount.starts_at:
        return _rejected(INVALID_CODE_MESSAGE, "DISCOUNT_INVALID", subtotal, discount)

    if discount.ends_at and now > discount.ends_at:
        return _rejected(INVALID_CODE_MESSAGE, "DISCOUNT_INVALID", subtotal, discount)

    if discount.min_order_amount is not None and subtotal < _money(discount.min_order_amount):
        return _rejected(
            f"Minimum order amount for this discount is {_money(discount.min_order_amount)}",
            "DISCOUNT_MIN_ORDER",
            subtotal,
            discount,
        )

    if discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
        return _rejected(USAGE_LIMIT_MESSAGE, "DISCOUNT_USAGE_LIMIT", subtotal, discount)

    return DiscountEvaluation(
        valid=True,
        discount=discount,
        subtotal=subtotal,
        amount=compute_discount_amount(
            discount_type=discount.type,
            value=discount.value,
            subtotal=subtotal,
        ),
    )


def evaluate_discount(*, code, order_subtotal, now=None) -> DiscountEvaluation:
    subtotal = _money(order_subtotal)
    normalized = normalize_code(code)
    if not normalized:
        return _rejected(MISSING_CODE_MESSAGE, "DISCOUNT_REQUIRED", subtotal)

    discount = Discount.objects.filter(code=normalized).first()
    return _evaluate(discount, subtotal, now or timezone.now())


def redeem_discount(*, code, order_subtotal, now=None) -> DiscountEvaluation:
    """
    Locking variant of evaluate_discount() for use inside transaction.atomic.

    Raises DiscountRejected. The lock is held until the enclosing transaction
    ends, i.e. after the order row that consumes the redemption is written.
    """
    subtotal = _money(order_subtotal)
    normalized = normalize_code(code)
    if not normalized:
        raise DiscountRejected(MISSING_CODE_MESSAGE, code="DISCOUNT_REQUIRED")

    discount = Discount.objects.select_for_update().filter(code=normalized).first()
    return _evaluate(discount, subtotal, now or timezone.now()).raise_if_invalid()
