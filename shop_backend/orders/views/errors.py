# orders/views/errors.py

import logging

from backend.responses import error_response
from orders.services.exceptions import CheckoutError

logger = logging.getLogger(__name__)

INFRASTRUCTURE_MESSAGE = "Something went wrong while processing the order, please try again"


def checkout_error_response(exc: CheckoutError):
    return error_response(code=exc.code, message=exc.message, http_status=exc.http_status)


def infrastructure_error_response(exc, *, action: str, **context):
    logger.exception(f"{action} failed", extra={"error": str(exc), **context})
    return error_response(
        code="INFRASTRUCTURE_ERROR",
        message=INFRASTRUCTURE_MESSAGE,
        http_status=500,
    )
