import threading
from concurrent.futures import ThreadPoolExecutor
from unittest import skipUnless

from django.db import connection, connections
from django.test import TransactionTestCase

from catalog.models import ProductVariant
from orders.models import Order
from orders.services.checkout import place_order
from orders.services.exceptions import ConcurrencyConflict, DiscountNotApplicableError
from orders.tests.factories import (
    address_fields,
    make_cart,
    make_discount,
    make_product,
    make_user,
)


@skipUnless(connection.vendor == "postgresql", "needs row locks (PostgreSQL)")
class ConcurrentCheckoutTests(TransactionTestCase):
    """
    GUARANTEES (real parallel transactions):
    - Two buyers racing for the last units: one order, no negative stock
    - A usage limit of 1 admits exactly one of two racing redemptions
    """

    def setUp(self):
        self.product = make_product(title="Hoodie", price="999.00", variants=[("M", "999.00", 5)])
        self.variant = self.product.variants.get()
        self.buyers = [make_user("first@example.com"), make_user("second@example.com")]

    def _race(self, carts, **kwargs):
        barrier = threading.Barrier(len(carts))

        def checkout(user, cart):
            try:
                barrier.wait(timeout=10)
                return place_order(
                    user=user, cart_id=cart.id, shipping_address=address_fields(), **kwargs
                )
            except Exception as exc:  # collected and asserted by the caller
                return exc
            finally:
                connections.close_all()

        with ThreadPoolExecutor(max_workers=len(carts)) as pool:
            futures = [pool.submit(checkout, user, cart) for user, cart in carts]
            return [f.result() for f in futures]

    def test_last_units_are_sold_once(self):
        carts = [
            (user, make_cart(user, [{"product": self.product, "variant": self.variant, "quantity": 3}]))
            for user in self.buyers
        ]

        results = self._race(carts)

        orders = [r for r in results if isinstance(r, Order)]
        conflicts = [r for r in results if isinstance(r, ConcurrencyConflict)]
        self.assertEqual((len(orders), len(conflicts)), (1, 1), results)
        self.assertEqual(ProductVariant.objects.get(pk=self.variant.pk).inventory_quantity, 2)
        self.assertEqual(Order.objects.count(), 1)

    def test_usage_limit_admits_one_racing_redemption(self):
        discount = make_discount("ONCE", value="10", usage_limit=1)
        carts = [
            (user, make_cart(user, [{"product": self.product, "variant": self.variant}]))
            for user in self.buyers
        ]

        results = self._race(carts, discount_code="ONCE")

        orders = [r for r in results if isinstance(r, Order)]
        rejected = [r for r in results if isinstance(r, DiscountNotApplicableError)]
        self.assertEqual((len(orders), len(rejected)), (1, 1), results)
        self.assertEqual(discount.orders.count(), 1)
        self.assertEqual(ProductVariant.objects.get(pk=self.variant.pk).inventory_quantity, 4)
