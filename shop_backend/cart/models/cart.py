"""
PATH: cart/models/cart.py

CART MODEL

Purpose:
- A pending purchase session (temporary, mutable).
- Owned by a user, or anonymous (addressed by its id / cartId cookie).

Rules:
- total_quantity always equals the sum of line quantities; every mutation in
  cart.services.cart_service recomputes it in the same transaction.
- Consumed by checkout: lines deleted, total_quantity zeroed.
- An anonymous cart is claimed by the first authenticated user who uses it.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Sum


class Cart(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="carts",
    )

    total_quantity = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def subtotal_amount(self) -> Decimal:
        total = (
            self.lines.annotate(line_total=F("quantity") * F("price_amount"))
            .aggregate(total=Sum("line_total"))
            .get("total")
        )
        return total or Decimal("0.00")

    @property
    def currency(self) -> str:
        first = self.lines.order_by("created_at").first()
        if first is not None:
            return first.price_currency
        return getattr(settings, "DEFAULT_CURRENCY", "INR")

    @property
    def is_empty(self) -> bool:
        return not self.lines.exists()

    def is_accessible_by(self, user) -> bool:
        if self.user_id is None:
            return True
        return bool(user and user.is_authenticated and user.pk == self.user_id)

    def __str__(self):
        owner = self.user_id or "anonymous"
        return f"Cart {self.id} | {owner} | qty={self.total_quantity}"
