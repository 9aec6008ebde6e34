"""
PATH: cart/models/cart_line.py

CART LINE MODEL

Rules:
- Either a catalog line (product, optional variant) or a custom-product line
  (see catalog.lines). Enforced in clean() and by a check constraint.
- Quantity >= 1.
- price_amount / price_currency are captured when the line is added and are
  not looked up again at checkout.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from catalog.lines import LineKindMixin, line_kind_constraint
from catalog.models import CustomProduct, Product, ProductVariant

from .cart import Cart


class CartLine(LineKindMixin, models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart_lines",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart_lines",
    )
    custom_product = models.ForeignKey(
        CustomProduct,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart_lines",
    )

    quantity = models.PositiveIntegerField(help_text="Must be greater than zero")

    price_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Snapshot price at time of adding to cart (server-controlled)",
    )
    price_currency = models.CharField(max_length=3)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            line_kind_constraint(name="cart_line_catalog_or_custom"),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_line_quantity_positive",
            ),
        ]

    def clean(self):
        self.clean_line_kind()

        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero"})

        if self.price_amount is None or self.price_amount < 0:
            raise ValidationError({"price_amount": "Price cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def line_total(self) -> Decimal:
        return (self.price_amount or Decimal("0.00")) * Decimal(int(self.quantity or 0))

    def __str__(self):
        return f"{self.kind} x {self.quantity}"
