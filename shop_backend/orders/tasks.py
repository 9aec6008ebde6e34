# orders/tasks.py

import logging
from smtplib import SMTPException

from celery import shared_task
from kombu.exceptions import OperationalError as BrokerError

from orders.models import Order
from orders.services.notifications import send_order_confirmation

logger = logging.getLogger(__name__)


@shared_task(
    name="orders.send_order_confirmation",
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_order_confirmation_task(order_id: str):
    order = (
        Order.objects.select_related("user", "shipping_address")
        .filter(pk=order_id)
        .first()
    )
    if order is None:
        logger.warning("Order confirmation skipped: order not found", extra={"order_id": order_id})
        return 0

    return send_order_confirmation(order)


def queue_order_confirmation(order_id) -> None:
    """
    Hand the confirmation e-mail to the worker. Registered with
    transaction.on_commit by the checkout coordinator; a broker outage is
    logged and does not affect the placed order.
    """
    try:
        send_order_confirmation_task.delay(str(order_id))
    except (BrokerError, OSError):
        logger.exception(
            "Could not queue order confirmation e-mail",
            extra={"order_id": str(order_id)},
        )
