# discounts/models.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


class Discount(models.Model):
    """
    A redeemable discount code.

    USAGE MODEL (IMPORTANT):
    - There is no usage counter column.
    - Usage = number of orders whose applied_discount is this row
      (reverse relation: discount.orders).
    - Checkout locks this row while it re-counts and inserts the order,
      so usage_limit cannot be overshot by concurrent checkouts.
    """

    class Type(models.TextChoices):
        PERCENTAGE = "PERCENTAGE", "Percentage"
        FIXED = "FIXED", "Fixed Amount"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=64, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")

    type = models.CharField(max_length=16, choices=Type.choices)
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Percent (e.g. 10.00) if PERCENTAGE; currency amount if FIXED.",
    )

    min_order_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    starts_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(null=True, blank=True)
    usage_limit = models.PositiveIntegerField(
        null=True, blank=True, help_text="Leave empty for unlimited redemptions."
    )

    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        self.code = normalize_code(self.code)
        if not self.code:
            raise ValidationError({"code": "Discount code is required"})

        if self.value is None or Decimal(self.value) <= 0:
            raise ValidationError({"value": "Value must be greater than zero"})

        if self.type == self.Type.PERCENTAGE and Decimal(self.value) > Decimal("100"):
            raise ValidationError({"value": "Percentage cannot exceed 100"})

        if self.min_order_amount is not None and Decimal(self.min_order_amount) < 0:
            raise ValidationError({"min_order_amount": "Cannot be negative"})

        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValidationError({"ends_at": "ends_at must be after starts_at"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def usage_count(self) -> int:
        return self.orders.count()

    def __str__(self):
        return f"{self.code} ({self.type} {self.value})"
