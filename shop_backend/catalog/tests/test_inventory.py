from django.test import TestCase

from catalog.lines import CatalogLine, CustomLine
from catalog.models import ProductVariant
from catalog.services.inventory import (
    InsufficientInventoryError,
    VariantUnavailableError,
    check_availability,
    decrement_inventory,
    increment_inventory,
    tracked_variant_id,
)
from orders.tests.factories import make_custom_product, make_product


class _Line:
    def __init__(self, kind, quantity):
        self.kind = kind
        self.quantity = quantity


class InventoryLedgerTests(TestCase):
    """
    GUARANTEES:
    - Decrement never drives stock below zero
    - A product-only line moves the first variant by position
    - Custom products and variantless products are untracked
    - Increment restores exactly the recorded quantity
    """

    def setUp(self):
        self.product = make_product(
            title="Hoodie",
            variants=[("S", "999.00", 5), ("M", "999.00", 2)],
        )
        self.small = self.product.variants.get(title="S")
        self.medium = self.product.variants.get(title="M")

    # =====================================================
    # DECREMENT
    # =====================================================

    def test_decrement_named_variant(self):
        decrement_inventory(_Line(CatalogLine(self.product.id, self.medium.id), 2))

        self.medium.refresh_from_db()
        self.assertEqual(self.medium.inventory_quantity, 0)

    def test_decrement_product_only_line_uses_first_variant(self):
        decrement_inventory(_Line(CatalogLine(self.product.id), 3))

        self.small.refresh_from_db()
        self.medium.refresh_from_db()
        self.assertEqual(self.small.inventory_quantity, 2)
        self.assertEqual(self.medium.inventory_quantity, 2)

    def test_decrement_beyond_stock_raises_and_leaves_stock(self):
        with self.assertRaises(InsufficientInventoryError) as ctx:
            decrement_inventory(_Line(CatalogLine(self.product.id, self.medium.id), 3))

        self.assertEqual(ctx.exception.requested, 3)
        self.medium.refresh_from_db()
        self.assertEqual(self.medium.inventory_quantity, 2)

    def test_allow_negative_setting_restores_unconditional_decrement(self):
        with self.settings(INVENTORY_ALLOW_NEGATIVE=True):
            decrement_inventory(_Line(CatalogLine(self.product.id, self.medium.id), 3))

        self.medium.refresh_from_db()
        self.assertEqual(self.medium.inventory_quantity, -1)

    def test_custom_line_is_untracked(self):
        custom = make_custom_product()
        self.assertIsNone(decrement_inventory(_Line(CustomLine(custom.id), 10)))

    def test_product_without_variants_is_untracked(self):
        bare = make_product(title="Sticker", price="49.00")
        self.assertIsNone(tracked_variant_id(CatalogLine(bare.id)))
        self.assertIsNone(decrement_inventory(_Line(CatalogLine(bare.id), 1)))

    def test_zero_quantity_is_rejected(self):
        with self.assertRaises(ValueError):
            decrement_inventory(_Line(CatalogLine(self.product.id, self.small.id), 0))

    # =====================================================
    # INCREMENT
    # =====================================================

    def test_increment_restores_quantity(self):
        increment_inventory(_Line(CatalogLine(self.product.id, self.small.id), 4))

        self.small.refresh_from_db()
        self.assertEqual(self.small.inventory_quantity, 9)

    def test_increment_onto_recorded_variant(self):
        line = _Line(CatalogLine(self.product.id), 2)

        self.assertEqual(increment_inventory(line, variant_id=self.medium.id), self.medium.id)

        self.small.refresh_from_db()
        self.medium.refresh_from_db()
        self.assertEqual(self.small.inventory_quantity, 5)
        self.assertEqual(self.medium.inventory_quantity, 4)

    def test_increment_for_vanished_variant_is_skipped(self):
        line = _Line(CatalogLine(self.product.id, self.small.id), 1)
        self.small.delete()

        self.assertIsNone(increment_inventory(line))

    # =====================================================
    # AVAILABILITY (CART ADD)
    # =====================================================

    def test_check_availability(self):
        check_availability(variant=self.small, quantity=5)

        with self.assertRaises(VariantUnavailableError):
            check_availability(variant=self.small, quantity=6)

        ProductVariant.objects.filter(pk=self.small.pk).update(available_for_sale=False)
        self.small.refresh_from_db()
        with self.assertRaises(VariantUnavailableError):
            check_availability(variant=self.small, quantity=1)
