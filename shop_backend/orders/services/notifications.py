# orders/services/notifications.py
"""
ORDER E-MAILS

send_order_confirmation(order) renders and sends the confirmation e-mail.
It is called from the Celery task in orders.tasks, never from inside the
checkout transaction.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def confirmation_context(order) -> dict:
    return {
        "order": order,
        "items": list(order.items.all()),
        "shipping": order.shipping_address,
        "customer_name": order.user.full_name or order.user.email,
        "frontend_url": getattr(settings, "FRONTEND_BASE_URL", "").rstrip("/"),
    }


def send_order_confirmation(order) -> int:
    context = confirmation_context(order)
    subject = f"Order confirmation {order.order_number}"

    sent = send_mail(
        subject=subject,
        message=render_to_string("orders/email/order_confirmation.txt", context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[order.user.email],
        html_message=render_to_string("orders/email/order_confirmation.html", context),
        fail_silently=False,
    )

    logger.info(
        "Order confirmation sent",
        extra={"order_number": order.order_number, "recipient": order.user.email},
    )
    return sent
