from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from discounts.models import Discount
from discounts.services.evaluator import (
    DiscountRejected,
    compute_discount_amount,
    evaluate_discount,
    redeem_discount,
)
from orders.tests.factories import make_discount


class DiscountMathTests(TestCase):
    def test_percentage_is_rounded_half_up(self):
        amount = compute_discount_amount(
            discount_type=Discount.Type.PERCENTAGE, value="15", subtotal="333.30"
        )
        self.assertEqual(amount, Decimal("50.00"))

    def test_fixed_is_capped_at_subtotal(self):
        amount = compute_discount_amount(
            discount_type=Discount.Type.FIXED, value="500", subtotal="120.00"
        )
        self.assertEqual(amount, Decimal("120.00"))

    def test_hundred_percent_zeroes_subtotal(self):
        result = evaluate_discount(code="ALL", order_subtotal="80.00")
        self.assertFalse(result.valid)

        make_discount("ALL", value="100")
        result = evaluate_discount(code="all", order_subtotal="80.00")
        self.assertTrue(result.valid)
        self.assertEqual(result.discounted_subtotal, Decimal("0.00"))


class DiscountRulesTests(TestCase):
    """
    GUARANTEES:
    - Codes are matched trimmed + case-insensitively
    - Inactive / out-of-window codes read as invalid
    - Minimum order and usage limit are enforced
    """

    def test_code_is_normalized(self):
        make_discount("SAVE10")
        result = evaluate_discount(code="  save10 ", order_subtotal="999.00")

        self.assertTrue(result.valid)
        self.assertEqual(result.amount, Decimal("99.90"))

    def test_unknown_code(self):
        result = evaluate_discount(code="NOPE", order_subtotal="100")
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "Invalid or expired discount code")
        self.assertEqual(result.error_code, "DISCOUNT_INVALID")

    def test_inactive_code(self):
        make_discount("OFF", active=False)
        self.assertFalse(evaluate_discount(code="OFF", order_subtotal="100").valid)

    def test_window(self):
        now = timezone.now()
        make_discount("LATER", starts_at=now + timedelta(days=1))
        make_discount("GONE", ends_at=now - timedelta(minutes=1))

        self.assertFalse(evaluate_discount(code="LATER", order_subtotal="100", now=now).valid)
        self.assertFalse(evaluate_discount(code="GONE", order_subtotal="100", now=now).valid)

    def test_minimum_order_amount(self):
        make_discount("BIG", min_order_amount=Decimal("1000.00"))
        result = evaluate_discount(code="BIG", order_subtotal="999.99")

        self.assertFalse(result.valid)
        self.assertEqual(result.error_code, "DISCOUNT_MIN_ORDER")
        self.assertEqual(result.reason, "Minimum order amount for this discount is 1000.00")

    def test_missing_code(self):
        result = evaluate_discount(code="   ", order_subtotal="100")
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "Discount code is required")

    def test_redeem_raises_with_reason(self):
        with self.assertRaises(DiscountRejected) as ctx:
            redeem_discount(code="NOPE", order_subtotal="100")
        self.assertEqual(ctx.exception.code, "DISCOUNT_INVALID")

    def test_percentage_over_hundred_is_rejected_by_model(self):
        with self.assertRaises(ValidationError):
            make_discount("TOOMUCH", value="150")
