import json

from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from orders.models import Order, Payment
from orders.services.checkout import place_order
from orders.tests.factories import address_fields, make_cart, make_product, make_user
from payments.services.gateway import sign_payload

SECRET = "test-secret"
URL = "/api/payments/phonepe/callback/"

PAYMENTS = {
    "PHONEPE": {
        "CLASS": "payments.services.gateway.HostedCheckoutGateway",
        "BASE_URL": "https://pay.example",
        "SECRET_KEY": SECRET,
        "CALLBACK_URL": "https://shop.example/api/payments/phonepe/callback/",
        "REDIRECT_URL": "https://shop.example/checkout/complete",
        "TIMEOUT": 5,
    }
}


@override_settings(PAYMENTS=PAYMENTS)
class PaymentCallbackTests(TestCase):
    """
    GUARANTEES:
    - Only correctly signed callbacks are applied
    - SUCCESS marks the payment PAID and moves the order to PROCESSING
    - Replays never change a settled payment
    """

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        user = make_user()
        product = make_product(title="Hoodie", price="999.00", variants=[("M", "999.00", 5)])
        cart = make_cart(user, [{"product": product, "variant": product.variants.get()}])
        self.order = place_order(
            user=user, cart_id=cart.id, shipping_address=address_fields(), payment_method="PHONEPE"
        )
        self.payment = self.order.payment
        self.payment.provider_reference = self.order.order_number
        self.payment.save(update_fields=["provider_reference"])

    def _callback(self, status, *, reference=None, secret=SECRET, url=URL):
        body = json.dumps(
            {"reference": reference or self.order.order_number, "status": status, "amount": 99900}
        )
        return self.client.post(
            url,
            data=body,
            content_type="application/json",
            HTTP_X_VERIFY=sign_payload(secret, body.encode("utf-8")),
        )

    def test_success_marks_paid(self):
        res = self._callback("SUCCESS")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["paymentStatus"], "PAID")
        self.assertEqual(res.data["orderId"], str(self.order.id))

        self.payment.refresh_from_db()
        self.order.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PAID)
        self.assertIsNotNone(self.payment.paid_at)
        self.assertEqual(self.order.status, Order.STATUS_PROCESSING)

    def test_replay_is_idempotent(self):
        self._callback("SUCCESS")
        self.payment.refresh_from_db()
        paid_at = self.payment.paid_at

        res = self._callback("FAILED")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["paymentStatus"], "PAID")
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.paid_at, paid_at)

    def test_failed_leaves_order_pending(self):
        res = self._callback("FAILED")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["paymentStatus"], "FAILED")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)

    def test_pending_changes_nothing(self):
        res = self._callback("PENDING")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["paymentStatus"], "INITIATED")

    def test_bad_signature(self):
        res = self._callback("SUCCESS", secret="wrong")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_SIGNATURE")
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_INITIATED)

    def test_missing_signature(self):
        res = self.client.post(URL, data="{}", content_type="application/json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_SIGNATURE")

    def test_unknown_reference(self):
        res = self._callback("SUCCESS", reference="ORD-00000000-UNKNOWN")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_unknown_provider(self):
        res = self._callback("SUCCESS", url="/api/payments/acme/callback/")
        self.assertEqual(res.status_code, 404)

    def test_unknown_status_is_rejected(self):
        res = self._callback("MAYBE")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")
