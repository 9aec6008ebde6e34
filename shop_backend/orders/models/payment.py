# orders/models/payment.py

import uuid

from django.db import models


class Payment(models.Model):
    """
    The single payment record of an Order.

    - method: "COD" or a provider tag (a key of settings.PAYMENTS).
    - provider_reference / redirect_url are filled after commit, when the
      hosted checkout is initiated.
    - Provider callbacks are matched on provider_reference (unique) and
      applied idempotently.
    """

    METHOD_COD = "COD"

    STATUS_INITIATED = "INITIATED"
    STATUS_PAID = "PAID"
    STATUS_FAILED = "FAILED"
    STATUS_REFUNDED = "REFUNDED"
    STATUS_NONE = "NONE"

    STATUS_CHOICES = [
        (STATUS_INITIATED, "Initiated"),
        (STATUS_PAID, "Paid"),
        (STATUS_FAILED, "Failed"),
        (STATUS_REFUNDED, "Refunded"),
        (STATUS_NONE, "None"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payment",
    )

    method = models.CharField(max_length=32)
    provider = models.CharField(max_length=32, blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_INITIATED)

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)

    provider_reference = models.CharField(max_length=128, unique=True, null=True, blank=True)
    redirect_url = models.URLField(max_length=1024, blank=True, default="")
    provider_payload = models.JSONField(default=dict, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def is_cash_on_delivery(self) -> bool:
        return self.method == self.METHOD_COD

    def __str__(self):
        return f"{self.method} {self.amount} {self.currency} | {self.status}"
