from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import Order, Payment
from orders.services.checkout import place_order
from orders.tests.factories import (
    address_fields,
    make_cart,
    make_discount,
    make_product,
    make_user,
)
from payments.services.gateway import RefundResult

ADMIN_URL = "/api/orders/admin/"


class StaffOrderApiTests(TestCase):
    """
    GUARANTEES:
    - Only staff reach the admin endpoints
    - Status updates follow the lifecycle; CANCELED restores stock
    - Refunds call the provider only for captured provider payments
    """

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.staff = make_user("staff@example.com", staff=True)
        self.customer = make_user("customer@example.com")
        self.product = make_product(title="Hoodie", price="999.00", variants=[("M", "999.00", 5)])
        self.variant = self.product.variants.get()
        self.order = self._place()
        self.client.force_authenticate(self.staff)

    def _place(self, **kwargs):
        cart = make_cart(self.customer, [{"product": self.product, "variant": self.variant}])
        return place_order(
            user=self.customer, cart_id=cart.id, shipping_address=address_fields(), **kwargs
        )

    def _status(self, status, **extra):
        return self.client.patch(
            f"{ADMIN_URL}{self.order.id}/status/", {"status": status, **extra}, format="json"
        )

    def test_customer_is_forbidden(self):
        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.get(ADMIN_URL).status_code, 403)
        self.assertEqual(self._status("PROCESSING").status_code, 403)

    def test_list_and_filter(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_SHIPPED)
        self._place()

        res = self.client.get(ADMIN_URL, {"status": "SHIPPED"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["customer"]["email"], "customer@example.com")

    def test_ship_with_tracking(self):
        self.assertEqual(self._status("PROCESSING").status_code, 200)

        res = self._status("SHIPPED", trackingNumber="AWB123", trackingCompany="BlueDart")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "SHIPPED")
        self.assertEqual(res.data["trackingNumber"], "AWB123")
        self.assertEqual(res.data["trackingCompany"], "BlueDart")

    def test_skipping_a_step_is_refused(self):
        res = self._status("DELIVERED")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_STATUS_TRANSITION")

    def test_cancel_via_status_restores_stock(self):
        res = self._status("CANCELED", notes="Out of region")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["cancelReason"], "Out of region")
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.inventory_quantity, 5)

    def test_pending_order_cannot_be_refunded(self):
        res = self.client.post(f"{ADMIN_URL}{self.order.id}/refund/", {}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_refund_cod_order_without_provider_call(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_DELIVERED)

        with patch("payments.services.gateway.HostedCheckoutGateway.refund") as refund:
            res = self.client.post(f"{ADMIN_URL}{self.order.id}/refund/", {"notes": "Damaged"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], "REFUNDED")
        self.assertEqual(res.data["adminNotes"], "Damaged")
        refund.assert_not_called()

    def _captured_provider_order(self):
        order = self._place(payment_method="PHONEPE")
        Order.objects.filter(pk=order.pk).update(status=Order.STATUS_PROCESSING)
        Payment.objects.filter(order=order).update(
            status=Payment.STATUS_PAID, provider_reference=order.order_number
        )
        return order

    def test_refund_captured_provider_payment(self):
        order = self._captured_provider_order()
        result = RefundResult(reference=order.order_number, accepted=True, payload={"id": "rf_1"})

        with patch(
            "payments.services.gateway.HostedCheckoutGateway.refund", return_value=result
        ) as refund:
            res = self.client.post(f"{ADMIN_URL}{order.id}/refund/", {}, format="json")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["payment"]["status"], "REFUNDED")
        self.assertEqual(refund.call_args.kwargs["amount"], Decimal("999.00"))

    def test_declined_provider_refund_is_502(self):
        order = self._captured_provider_order()
        result = RefundResult(reference=order.order_number, accepted=False)

        with patch("payments.services.gateway.HostedCheckoutGateway.refund", return_value=result):
            res = self.client.post(f"{ADMIN_URL}{order.id}/refund/", {}, format="json")

        self.assertEqual(res.status_code, 502)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PROCESSING)

    def test_redeemed_discount_cannot_be_deleted(self):
        discount = make_discount("USED", value="5")
        self._place(discount_code="USED")

        res = self.client.delete(f"/api/discount/admin/{discount.id}/")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "DISCOUNT_IN_USE")
