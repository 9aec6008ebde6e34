# catalog/models/product.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


def _default_currency() -> str:
    return getattr(settings, "DEFAULT_CURRENCY", "INR")


class Product(models.Model):
    """
    A sellable catalog product.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives on ProductVariant.inventory_quantity
    - A product with zero variants is untracked for inventory
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    title = models.CharField(max_length=255, db_index=True)
    handle = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")

    # Price used for lines that do not name a variant
    min_price_amount = models.DecimalField(max_digits=10, decimal_places=2)
    min_price_currency = models.CharField(max_length=3, default=_default_currency)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.title

    def clean(self):
        if self.min_price_amount is None or Decimal(self.min_price_amount) < 0:
            raise ValidationError("min_price_amount cannot be negative")


class ProductVariant(models.Model):
    """
    A purchasable configuration of a Product carrying its own stock count.

    inventory_quantity is non-negative by invariant. The database does not
    enforce it; catalog.services.inventory guards every decrement with a
    conditional update instead.
    """

    # Deterministic pick when an order line names only the product.
    TRACKING_ORDER = ("position", "created_at", "id")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    title = models.CharField(max_length=255)
    sku = models.CharField(max_length=128, blank=True, default="")
    position = models.PositiveIntegerField(default=0)

    price_amount = models.DecimalField(max_digits=10, decimal_places=2)
    price_currency = models.CharField(max_length=3, default=_default_currency)

    inventory_quantity = models.IntegerField(default=0)
    available_for_sale = models.BooleanField(default=True)

    selected_options = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["position", "created_at", "id"]
        indexes = [
            models.Index(fields=["product", "position"], name="catalog_variant_position_idx"),
        ]

    def __str__(self):
        return f"{self.product.title} / {self.title}"

    def clean(self):
        if self.price_amount is None or Decimal(self.price_amount) < 0:
            raise ValidationError("price_amount cannot be negative")

    def can_fulfil(self, quantity: int) -> bool:
        return bool(self.available_for_sale) and int(self.inventory_quantity) >= int(quantity)
