"""
======================================================
PATH: catalog/services/inventory.py
======================================================
INVENTORY LEDGER ACCESSOR

Purpose:
- Move per-variant stock in step with order creation (decrement) and
  order cancellation (increment).
- Check availability at cart-add time.

Rules:
- Custom-product lines carry no inventory and are skipped.
- A line naming a variant adjusts that variant.
- A line naming only a product adjusts the product's tracked variant:
  first by (position, created_at, id). No variant at all: skipped silently.
- Decrement is a conditional UPDATE (inventory_quantity >= qty). Zero rows
  affected raises InsufficientInventoryError and the caller's transaction
  rolls back. INVENTORY_ALLOW_NEGATIVE=True restores the legacy unconditional
  decrement.
- Increment is unconditional and restores exactly the quantity recorded on
  the OrderItem, onto the variant the decrement returned (stored by the caller), not one
  re-resolved at cancel time.

Notes:
- Both directions run inside the caller's transaction (checkout coordinator).
- Lines are anything exposing `.kind` (catalog.lines) and `.quantity`.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from catalog.lines import CatalogLine, CustomLine
from catalog.models import ProductVariant

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================


class InventoryError(Exception):
    pass


class InsufficientInventoryError(InventoryError):
    def __init__(self, *, variant_id, requested: int):
        self.variant_id = variant_id
        self.requested = requested
        super().__init__(
            f"Insufficient inventory for variant {variant_id} (requested {requested})"
        )


class VariantUnavailableError(InventoryError):
    pass


# ============================================================
# HELPERS
# ============================================================


def _to_int_qty(value) -> int:
    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")
    qty = int(value)
    if qty <= 0:
        raise ValueError("quantity must be at least 1")
    return qty


def _allow_negative() -> bool:
    return bool(getattr(settings, "INVENTORY_ALLOW_NEGATIVE", False))


def tracked_variant_id(kind) -> Optional[uuid.UUID]:
    """
    Variant whose stock a line moves, or None when nothing is tracked.
    """
    if isinstance(kind, CustomLine):
        return None

    if not isinstance(kind, CatalogLine):
        raise TypeError(f"Unsupported line kind: {kind!r}")

    if kind.variant_id:
        return kind.variant_id

    return (
        ProductVariant.objects.filter(product_id=kind.product_id)
        .order_by(*ProductVariant.TRACKING_ORDER)
        .values_list("id", flat=True)
        .first()
    )


# ============================================================
# LEDGER OPERATIONS
# ============================================================


@transaction.atomic
def decrement_inventory(line) -> Optional[uuid.UUID]:
    """
    Take line.quantity units out of the tracked variant.

    Returns the adjusted variant id, or None when the line is untracked.
    """
    qty = _to_int_qty(line.quantity)
    variant_id = tracked_variant_id(line.kind)
    if variant_id is None:
        return None

    qs = ProductVariant.objects.filter(pk=variant_id)
    if not _allow_negative():
        qs = qs.filter(inventory_quantity__gte=qty)

    updated = qs.update(
        inventory_quantity=F("inventory_quantity") - qty,
        updated_at=timezone.now(),
    )

    if updated == 0:
        logger.warning(
            "Inventory decrement rejected",
            extra={"variant_id": str(variant_id), "requested": qty},
        )
        raise InsufficientInventoryError(variant_id=variant_id, requested=qty)

    return variant_id


@transaction.atomic
def increment_inventory(line, *, variant_id=None) -> Optional[uuid.UUID]:
    """
    Put line.quantity units back (cancellation).

    variant_id is the id decrement_inventory returned for this line; without
    it the tracked variant is resolved from the line as it is now.
    """
    qty = _to_int_qty(line.quantity)
    if variant_id is None:
        variant_id = tracked_variant_id(line.kind)
    if variant_id is None:
        return None

    updated = ProductVariant.objects.filter(pk=variant_id).update(
        inventory_quantity=F("inventory_quantity") + qty,
        updated_at=timezone.now(),
    )

    if updated == 0:
        # Variant was deleted after the order was placed; nothing to restore.
        logger.warning(
            "Inventory increment skipped: variant no longer exists",
            extra={"variant_id": str(variant_id), "quantity": qty},
        )
        return None

    return variant_id


def check_availability(*, variant: ProductVariant, quantity: int) -> None:
    """
    Cart-add guard. Checkout re-checks with the conditional decrement.
    """
    if not variant.can_fulfil(_to_int_qty(quantity)):
        raise VariantUnavailableError("Variant unavailable or out of stock")
