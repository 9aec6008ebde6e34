from decimal import Decimal

from django.test import TestCase

from catalog.models import ProductVariant
from orders.models import Order
from orders.services.checkout import cancel_order, place_order, update_order_status
from orders.services.exceptions import NotFoundError, OrderNotCancelableError
from orders.tests.factories import (
    address_fields,
    make_cart,
    make_custom_product,
    make_product,
    make_user,
)


class CancelOrderTests(TestCase):
    """
    GUARANTEES:
    - Cancel restores exactly what checkout took, per line kind
    - Only PENDING / PROCESSING orders can be canceled
    - Customers can only cancel their own orders
    """

    def setUp(self):
        self.user = make_user()
        self.hoodie = make_product(
            title="Hoodie", price="999.00", variants=[("S", "999.00", 5), ("M", "999.00", 5)]
        )
        self.small = self.hoodie.variants.get(title="S")
        self.medium = self.hoodie.variants.get(title="M")
        self.custom = make_custom_product(user=self.user)

        cart = make_cart(
            self.user,
            [
                {"product": self.hoodie, "variant": self.medium, "quantity": 2},
                {"product": self.hoodie, "quantity": 1},
                {"custom_product": self.custom, "quantity": 4},
            ],
        )
        self.order = place_order(user=self.user, cart_id=cart.id, shipping_address=address_fields())

    def _stock(self, variant):
        return ProductVariant.objects.get(pk=variant.pk).inventory_quantity

    def test_checkout_then_cancel_restores_mixed_lines(self):
        self.assertEqual(self._stock(self.medium), 3)
        self.assertEqual(self._stock(self.small), 4)

        order = cancel_order(order_id=self.order.id, user=self.user, reason="Changed my mind")

        self.assertEqual(order.status, Order.STATUS_CANCELED)
        self.assertEqual(order.cancel_reason, "Changed my mind")
        self.assertIsNotNone(order.canceled_at)
        self.assertEqual(self._stock(self.medium), 5)
        self.assertEqual(self._stock(self.small), 5)

    def test_cancel_restocks_the_variant_checkout_took_after_catalog_reorder(self):
        tee = make_product(title="Tee", price="499.00", variants=[("S", "499.00", 5)])
        small = tee.variants.get()
        cart = make_cart(self.user, [{"product": tee, "quantity": 2}])
        order = place_order(user=self.user, cart_id=cart.id, shipping_address=address_fields())

        item = order.items.get(product=tee)
        self.assertIsNone(item.variant_id)
        self.assertEqual(item.inventory_variant_id, small.id)
        self.assertEqual(self._stock(small), 3)

        extra_small = ProductVariant.objects.create(
            product=tee,
            title="XS",
            position=0,
            price_amount=Decimal("499.00"),
            price_currency="INR",
            inventory_quantity=0,
        )
        ProductVariant.objects.filter(pk=small.pk).update(position=1)

        cancel_order(order_id=order.id, user=self.user)

        self.assertEqual(self._stock(small), 5)
        self.assertEqual(self._stock(extra_small), 0)

    def test_custom_line_records_no_inventory_variant(self):
        item = self.order.items.get(custom_product=self.custom)
        self.assertIsNone(item.inventory_variant_id)

    def test_default_reason(self):
        order = cancel_order(order_id=self.order.id, user=self.user)
        self.assertEqual(order.cancel_reason, "Canceled by customer")

    def test_processing_order_can_be_canceled(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_PROCESSING)
        order = cancel_order(order_id=self.order.id, user=self.user)
        self.assertEqual(order.status, Order.STATUS_CANCELED)

    def test_shipped_order_cannot_be_canceled(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_SHIPPED)

        with self.assertRaises(OrderNotCancelableError):
            cancel_order(order_id=self.order.id, user=self.user)

        self.assertEqual(self._stock(self.medium), 3)

    def test_cancel_twice_does_not_restock_twice(self):
        cancel_order(order_id=self.order.id, user=self.user)

        with self.assertRaises(OrderNotCancelableError):
            cancel_order(order_id=self.order.id, user=self.user)

        self.assertEqual(self._stock(self.medium), 5)

    def test_other_customer_gets_not_found(self):
        stranger = make_user("stranger@example.com")

        with self.assertRaises(NotFoundError):
            cancel_order(order_id=self.order.id, user=stranger)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)

    def test_staff_cancel_through_status_update_restores_stock(self):
        order = update_order_status(
            order_id=self.order.id, status=Order.STATUS_CANCELED, notes="Fraud check"
        )

        self.assertEqual(order.status, Order.STATUS_CANCELED)
        self.assertEqual(order.cancel_reason, "Fraud check")
        self.assertEqual(order.admin_notes, "Fraud check")
        self.assertEqual(self._stock(self.medium), 5)
