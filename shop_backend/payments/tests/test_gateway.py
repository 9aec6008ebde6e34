import io
import json
from decimal import Decimal
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

from django.test import SimpleTestCase, override_settings

from payments.services.gateway import (
    CONFIRMED_PAID,
    HostedCheckoutGateway,
    PaymentGatewayError,
    PaymentSignatureError,
    get_payment_gateway,
    sign_payload,
    to_minor_units,
)

CONFIG = {
    "BASE_URL": "https://pay.example/",
    "SECRET_KEY": "s3cret",
    "CALLBACK_URL": "https://shop.example/cb/",
    "REDIRECT_URL": "https://shop.example/done",
}


def _response(payload):
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8")
    resp.__enter__.return_value = resp
    return resp


class MinorUnitTests(SimpleTestCase):
    def test_conversion(self):
        self.assertEqual(to_minor_units(Decimal("999.10")), 99910)
        self.assertEqual(to_minor_units("0.005"), 1)
        self.assertEqual(to_minor_units(12), 1200)

    def test_garbage(self):
        with self.assertRaises(ValueError):
            to_minor_units("twelve")


class HostedCheckoutGatewayTests(SimpleTestCase):
    def setUp(self):
        self.gateway = HostedCheckoutGateway(provider="PHONEPE", config=CONFIG)

    @patch("payments.services.gateway.urlopen")
    def test_initiate(self, urlopen):
        urlopen.return_value = _response(
            {"success": True, "data": {"redirectUrl": "https://pay.example/r/1", "transactionId": "T1"}}
        )

        handle = self.gateway.initiate(reference="ORD-1", amount=Decimal("10.50"), currency="INR")

        self.assertEqual(handle.reference, "ORD-1")
        self.assertEqual(handle.redirect_url, "https://pay.example/r/1")
        self.assertEqual(handle.payload["transactionId"], "T1")

        request = urlopen.call_args.args[0]
        self.assertEqual(request.full_url, "https://pay.example/pg/v1/pay")
        body = json.loads(request.data)
        self.assertEqual(body["amount"], 1050)
        self.assertEqual(body["redirectUrl"], "https://shop.example/done")
        self.assertEqual(request.get_header("X-verify"), sign_payload("s3cret", request.data))

    @patch("payments.services.gateway.urlopen")
    def test_initiate_rejected(self, urlopen):
        urlopen.return_value = _response({"success": False, "message": "merchant disabled"})

        with self.assertRaisesMessage(PaymentGatewayError, "merchant disabled"):
            self.gateway.initiate(reference="ORD-1", amount="10", currency="INR")

    @patch("payments.services.gateway.urlopen")
    def test_http_error(self, urlopen):
        urlopen.side_effect = HTTPError(
            "https://pay.example/pg/v1/pay", 500, "boom", {}, io.BytesIO(b"upstream exploded")
        )

        with self.assertRaisesMessage(PaymentGatewayError, "HTTPError: 500"):
            self.gateway.initiate(reference="ORD-1", amount="10", currency="INR")

    @patch("payments.services.gateway.urlopen")
    def test_network_error(self, urlopen):
        urlopen.side_effect = URLError("no route")

        with self.assertRaises(PaymentGatewayError):
            self.gateway.refund(reference="ORD-1", amount="10")

    @patch("payments.services.gateway.urlopen")
    def test_refund_declined(self, urlopen):
        urlopen.return_value = _response({"success": False})

        result = self.gateway.refund(reference="ORD-1", amount="10")

        self.assertFalse(result.accepted)

    def test_missing_secret(self):
        gateway = HostedCheckoutGateway(provider="PHONEPE", config={"BASE_URL": "https://x"})
        with self.assertRaises(PaymentGatewayError):
            gateway.initiate(reference="ORD-1", amount="10", currency="INR")

    def test_confirm(self):
        raw = b'{"reference": "ORD-1", "status": "success", "amount": 1050}'

        confirmation = self.gateway.confirm(raw_body=raw, signature=sign_payload("s3cret", raw))

        self.assertEqual(confirmation.reference, "ORD-1")
        self.assertEqual(confirmation.status, CONFIRMED_PAID)
        self.assertEqual(confirmation.amount_minor, 1050)
        self.assertTrue(confirmation.is_paid)

    def test_confirm_rejects_tampered_body(self):
        raw = b'{"reference": "ORD-1", "status": "SUCCESS"}'
        signature = sign_payload("s3cret", raw)

        with self.assertRaises(PaymentSignatureError):
            self.gateway.confirm(raw_body=raw.replace(b"ORD-1", b"ORD-2"), signature=signature)


class GatewayRegistryTests(SimpleTestCase):
    @override_settings(PAYMENTS={"PHONEPE": {"CLASS": "payments.services.gateway.HostedCheckoutGateway"}})
    def test_lookup_is_case_insensitive(self):
        gateway = get_payment_gateway("phonepe")
        self.assertIsInstance(gateway, HostedCheckoutGateway)
        self.assertEqual(gateway.provider, "PHONEPE")

    def test_unknown_provider(self):
        with self.assertRaises(PaymentGatewayError):
            get_payment_gateway("acme")
