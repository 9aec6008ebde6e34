# catalog/models/custom_product.py

import uuid

from django.conf import settings
from django.db import models


def _default_currency() -> str:
    return getattr(settings, "DEFAULT_CURRENCY", "INR")


class CustomProduct(models.Model):
    """
    A user-designed product (e.g. a printed shirt).

    - Price is fixed when the design is saved.
    - Carries no inventory: order lines that reference it never touch stock.
    - design holds the front-end canvas JSON as-is.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="custom_products",
    )

    title = models.CharField(max_length=255)
    color = models.CharField(max_length=64, blank=True, default="")
    size = models.CharField(max_length=32, blank=True, default="")

    price_amount = models.DecimalField(max_digits=10, decimal_places=2)
    price_currency = models.CharField(max_length=3, default=_default_currency)

    preview_url = models.URLField(blank=True, default="")
    design = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} (custom)"
