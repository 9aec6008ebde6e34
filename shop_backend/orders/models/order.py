# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_order_number(now=None) -> str:
    """
    ORD-YYYYMMDD-<12 hex chars of a uuid4>. The unique constraint on
    Order.order_number backs it up.
    """
    stamp = (now or timezone.now()).strftime("%Y%m%d")
    return f"ORD-{stamp}-{uuid.uuid4().hex[:12].upper()}"


class Order(models.Model):
    """
    A placed order.

    Key rules:
    - Created once per successful checkout, in PENDING.
    - Never deleted; cancellation is a status transition (see
      orders.services.lifecycle).
    - Money fields are computed server-side by the order assembler.
    """

    STATUS_PENDING = "PENDING"
    STATUS_PROCESSING = "PROCESSING"
    STATUS_SHIPPED = "SHIPPED"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_CANCELED = "CANCELED"
    STATUS_REFUNDED = "REFUNDED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELED, "Canceled"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(max_length=64, unique=True, blank=True)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_method = models.CharField(max_length=32)

    # Money fields (server authoritative)
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    surcharge_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    total_currency = models.CharField(max_length=3)

    applied_discount = models.ForeignKey(
        "discounts.Discount",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )

    shipping_address = models.ForeignKey(
        "users.Address",
        on_delete=models.PROTECT,
        related_name="+",
    )
    billing_address = models.ForeignKey(
        "users.Address",
        on_delete=models.PROTECT,
        related_name="+",
    )

    cancel_reason = models.TextField(blank=True, default="")
    tracking_number = models.CharField(max_length=128, blank=True, default="")
    tracking_company = models.CharField(max_length=128, blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_order_status_idx"),
            models.Index(fields=["user", "created_at"], name="orders_order_user_created_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} {self.total_currency} | {self.status}"
