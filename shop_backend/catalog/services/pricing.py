# catalog/services/pricing.py

"""
PRICE SNAPSHOT

Which price a line captures:
1) custom product -> its own price
2) variant        -> variant price
3) product only   -> product min price

Used when a line is added to a cart and when checkout re-prices a
client-supplied cart snapshot.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _currency(value) -> str:
    return (value or getattr(settings, "DEFAULT_CURRENCY", "INR")).strip().upper()


def price_snapshot(*, product=None, variant=None, custom_product=None) -> tuple[Decimal, str]:
    if custom_product is not None:
        return _money(custom_product.price_amount), _currency(custom_product.price_currency)

    if variant is not None:
        return _money(variant.price_amount), _currency(variant.price_currency)

    if product is not None:
        return _money(product.min_price_amount), _currency(product.min_price_currency)

    raise ValueError("price_snapshot needs a product, variant or custom product")
