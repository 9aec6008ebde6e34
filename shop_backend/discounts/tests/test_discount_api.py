from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from discounts.models import Discount
from orders.tests.factories import make_discount, make_user


class DiscountValidateApiTests(TestCase):
    """
    GUARANTEES:
    - Preview answers with the computed amount and discounted subtotal
    - Rejections use the {"error": {code, message}} body
    """

    URL = "/api/discount/validate/"

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        make_discount("SAVE10", value="10", usage_limit=5)

    def test_valid_code(self):
        res = self.client.post(self.URL, {"code": "save10", "orderAmount": "999.00"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["message"], "Discount applied successfully")
        self.assertEqual(res.data["discount"]["code"], "SAVE10")
        self.assertEqual(res.data["discount"]["amount"], "99.90")
        self.assertEqual(res.data["discount"]["discountedSubtotal"], "899.10")
        self.assertEqual(res.data["discount"]["usageLimit"], 5)

    def test_invalid_code(self):
        res = self.client.post(self.URL, {"code": "NOPE", "orderAmount": "100"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["message"], "Invalid or expired discount code")

    def test_missing_amount_is_a_validation_error(self):
        res = self.client.post(self.URL, {"code": "SAVE10"}, format="json")
        self.assertEqual(res.status_code, 400)


class DiscountAdminApiTests(TestCase):
    URL = "/api/discount/admin/"

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.staff = make_user("staff@example.com", staff=True)
        self.customer = make_user("customer@example.com")

    def test_customer_cannot_manage_discounts(self):
        self.client.force_authenticate(self.customer)
        res = self.client.get(self.URL)
        self.assertEqual(res.status_code, 403)

    def test_staff_creates_normalized_code(self):
        self.client.force_authenticate(self.staff)
        res = self.client.post(
            self.URL,
            {"code": " summer ", "type": "FIXED", "value": "50.00", "usageLimit": 3},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        discount = Discount.objects.get()
        self.assertEqual(discount.code, "SUMMER")
        self.assertEqual(discount.usage_limit, 3)

    def test_staff_cannot_create_percentage_over_hundred(self):
        self.client.force_authenticate(self.staff)
        res = self.client.post(
            self.URL, {"code": "X", "type": "PERCENTAGE", "value": "120"}, format="json"
        )
        self.assertEqual(res.status_code, 400)

    def test_staff_deletes_unused_discount(self):
        discount = make_discount("BYE")
        self.client.force_authenticate(self.staff)

        res = self.client.delete(f"{self.URL}{discount.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertFalse(Discount.objects.filter(pk=discount.pk).exists())
