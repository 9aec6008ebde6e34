# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from catalog.lines import LineKindMixin, line_kind_constraint


class OrderItem(LineKindMixin, models.Model):
    """
    Line snapshot copied from a cart line (or a checked cart snapshot) when
    the order is created.

    - Independent of CartLine: cart lines are deleted after checkout.
    - quantity is what cancellation puts back, on inventory_variant (the
      variant checkout decremented), never on a variant re-resolved later.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )
    variant = models.ForeignKey(
        "catalog.ProductVariant",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )
    custom_product = models.ForeignKey(
        "catalog.CustomProduct",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )
    # Variant whose stock checkout actually took; cancel puts it back here.
    inventory_variant = models.ForeignKey(
        "catalog.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    title = models.CharField(max_length=255, blank=True, default="")
    quantity = models.PositiveIntegerField()
    price_amount = models.DecimalField(max_digits=10, decimal_places=2)
    price_currency = models.CharField(max_length=3)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            line_kind_constraint(name="order_item_catalog_or_custom"),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_item_quantity_positive",
            ),
        ]

    def clean(self):
        self.clean_line_kind()
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero"})

    @property
    def line_total(self) -> Decimal:
        return (self.price_amount or Decimal("0.00")) * Decimal(int(self.quantity or 0))

    def __str__(self):
        return f"{self.title or self.kind} x {self.quantity}"
