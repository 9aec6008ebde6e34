from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from cart.models import Cart
from orders.tests.factories import make_custom_product, make_product, make_user


class CartApiTests(TestCase):
    """
    GUARANTEES:
    - Lines capture a server-side price snapshot
    - Identical lines merge and total_quantity tracks the lines
    - Out-of-stock / unavailable variants are refused at add time
    - A cart owned by another user is never readable or writable
    """

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.product = make_product(title="Tee", price="499.00", variants=[("M", "549.00", 3)])
        self.variant = self.product.variants.get()

    def _add(self, **payload):
        return self.client.post("/api/cart/lines/", payload, format="json")

    def test_anonymous_add_creates_cart_and_sets_cookie(self):
        res = self._add(productId=str(self.product.id), variantId=str(self.variant.id), quantity=2)

        self.assertEqual(res.status_code, 200, res.data)
        self.assertIn("cartId", res.cookies)
        self.assertEqual(res.data["totalQuantity"], 2)
        self.assertEqual(res.data["lines"][0]["price"], {"amount": "549.00", "currencyCode": "INR"})
        self.assertEqual(res.data["subtotal"]["amount"], "1098.00")

    def test_identical_lines_merge(self):
        self._add(productId=str(self.product.id), variantId=str(self.variant.id))
        res = self._add(productId=str(self.product.id), variantId=str(self.variant.id))

        self.assertEqual(len(res.data["lines"]), 1)
        self.assertEqual(res.data["lines"][0]["quantity"], 2)

    def test_out_of_stock_variant_is_refused(self):
        res = self._add(productId=str(self.product.id), variantId=str(self.variant.id), quantity=4)

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "OUT_OF_STOCK")

    def test_custom_product_line(self):
        custom = make_custom_product()
        res = self._add(customProductId=str(custom.id))

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["lines"][0]["customProduct"]["title"], "My Design Tee")

    def test_line_needs_product_or_custom_product(self):
        res = self._add(quantity=1)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")

    def test_update_to_zero_removes_line(self):
        res = self._add(productId=str(self.product.id))
        line_id = res.data["lines"][0]["id"]
        cart_id = res.data["id"]

        res = self.client.patch(
            f"/api/cart/lines/{line_id}/", {"cartId": cart_id, "quantity": 0}, format="json"
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["lines"], [])
        self.assertEqual(res.data["totalQuantity"], 0)

    def test_delete_line(self):
        res = self._add(productId=str(self.product.id), quantity=2)
        line_id = res.data["lines"][0]["id"]

        res = self.client.delete(f"/api/cart/lines/{line_id}/?cartId={res.data['id']}")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["totalQuantity"], 0)

    def test_other_users_cart_is_forbidden(self):
        owner = make_user("owner@example.com")
        intruder = make_user("intruder@example.com")
        cart = Cart.objects.create(user=owner)

        self.client.force_authenticate(intruder)
        res = self.client.get(f"/api/cart/?cartId={cart.id}")

        self.assertEqual(res.status_code, 403)

    def test_authenticated_user_claims_anonymous_cart(self):
        res = self._add(productId=str(self.product.id))
        cart_id = res.data["id"]

        user = make_user()
        self.client.force_authenticate(user)
        res = self.client.get(f"/api/cart/?cartId={cart_id}")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(Cart.objects.get(pk=cart_id).user, user)
