from unittest.mock import patch

from django.core import mail
from django.test import TestCase
from kombu.exceptions import OperationalError

from orders.models import Order
from orders.services.checkout import place_order
from orders.services.notifications import send_order_confirmation
from orders.tasks import send_order_confirmation_task
from orders.tests.factories import address_fields, make_cart, make_product, make_user


class OrderConfirmationTests(TestCase):
    """
    GUARANTEES:
    - The confirmation e-mail goes out only after the order commits
    - A broken mail queue never undoes or fails a placed order
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product(title="Hoodie", price="999.00", variants=[("M", "999.00", 5)])
        self.variant = self.product.variants.get()

    def _place(self):
        cart = make_cart(self.user, [{"product": self.product, "variant": self.variant}])
        return place_order(user=self.user, cart_id=cart.id, shipping_address=address_fields())

    def test_email_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            order = self._place()
            self.assertEqual(len(mail.outbox), 0)

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["buyer@example.com"])
        self.assertIn(order.order_number, message.subject)
        self.assertIn("1099.00", message.body)
        self.assertEqual(message.alternatives[0][1], "text/html")

    def test_failed_checkout_sends_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with patch("orders.services.checkout._create_payment", side_effect=RuntimeError):
                with self.assertRaises(RuntimeError):
                    self._place()

        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)

    def test_broker_outage_is_logged_not_raised(self):
        with patch.object(
            send_order_confirmation_task, "delay", side_effect=OperationalError("broker down")
        ):
            with self.assertLogs("orders.tasks", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    order = self._place()

        self.assertTrue(Order.objects.filter(pk=order.pk).exists())
        self.assertEqual(len(mail.outbox), 0)

    def test_task_for_missing_order_is_a_no_op(self):
        self.assertEqual(send_order_confirmation_task("00000000-0000-0000-0000-000000000000"), 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_render_includes_surcharge_line(self):
        order = self._place()
        send_order_confirmation(order)

        self.assertIn("Cash on delivery fee: 100.00 INR", mail.outbox[0].body)
