# catalog/lines.py

"""
LINE KIND (CART LINES + ORDER ITEMS)

A purchasable line points at exactly one of:
- a catalog product (optionally pinned to one of its variants), or
- a custom product.

Never neither, never both. The model rows keep three nullable foreign keys
(that is what the relational schema can hold); this module is the single place
that turns those columns into a closed set of Python types, and provides the
matching model validation + database check constraint.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from django.core.exceptions import ValidationError
from django.db import models


class LineKindError(ValueError):
    pass


@dataclass(frozen=True)
class CatalogLine:
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None


@dataclass(frozen=True)
class CustomLine:
    custom_product_id: uuid.UUID


LineKind = Union[CatalogLine, CustomLine]


def line_kind(*, product_id=None, variant_id=None, custom_product_id=None) -> LineKind:
    if custom_product_id:
        if product_id or variant_id:
            raise LineKindError(
                "A line references either a catalog product or a custom product, not both"
            )
        return CustomLine(custom_product_id=custom_product_id)

    if product_id:
        return CatalogLine(product_id=product_id, variant_id=variant_id or None)

    if variant_id:
        raise LineKindError("A variant line must also reference its product")

    raise LineKindError("A line must reference a product or a custom product")


def line_kind_constraint(*, name: str) -> models.CheckConstraint:
    catalog = models.Q(product__isnull=False, custom_product__isnull=True)
    custom = models.Q(
        custom_product__isnull=False, product__isnull=True, variant__isnull=True
    )
    return models.CheckConstraint(condition=catalog | custom, name=name)


class LineKindMixin:
    """
    For models carrying product / variant / custom_product foreign keys.
    """

    @property
    def kind(self) -> LineKind:
        return line_kind(
            product_id=self.product_id,
            variant_id=self.variant_id,
            custom_product_id=self.custom_product_id,
        )

    @property
    def is_custom(self) -> bool:
        return isinstance(self.kind, CustomLine)

    def clean_line_kind(self) -> None:
        try:
            kind = self.kind
        except LineKindError as exc:
            raise ValidationError(str(exc)) from exc

        if isinstance(kind, CatalogLine) and kind.variant_id:
            variant = getattr(self, "variant", None)
            if variant is not None and variant.product_id != kind.product_id:
                raise ValidationError({"variant": "Variant does not belong to this product"})
