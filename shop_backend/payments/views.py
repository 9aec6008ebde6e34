# payments/views.py

"""
PAYMENT PROVIDER CALLBACKS

POST /api/payments/<provider>/callback/

- AllowAny; authenticity comes from the X-VERIFY HMAC over the raw body.
- Idempotent: replaying a callback for a settled payment returns 200 with
  the stored status.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from backend.responses import error_response
from orders.services.exceptions import CheckoutError
from orders.services.payments import record_payment_result
from orders.views.errors import checkout_error_response, infrastructure_error_response
from payments.services.gateway import (
    SIGNATURE_HEADER,
    PaymentGatewayError,
    PaymentSignatureError,
    get_payment_gateway,
)

logger = logging.getLogger(__name__)


class PaymentCallbackThrottle(AnonRateThrottle):
    scope = "payment_callback"


class PaymentCallbackView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PaymentCallbackThrottle]

    @extend_schema(
        request=None,
        responses={
            200: OpenApiResponse(description="Callback applied (or already applied)"),
            400: OpenApiResponse(description="Bad signature or malformed body"),
            404: OpenApiResponse(description="Unknown provider or payment reference"),
        },
        tags=["Payments"],
    )
    def post(self, request, provider):
        raw_body = request.body

        try:
            gateway = get_payment_gateway(provider)
        except PaymentGatewayError as exc:
            return error_response(
                code="NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND
            )

        try:
            confirmation = gateway.confirm(
                raw_body=raw_body, signature=request.META.get(SIGNATURE_HEADER)
            )
        except PaymentSignatureError as exc:
            logger.warning(
                "Payment callback rejected",
                extra={"provider": gateway.provider, "error": str(exc)},
            )
            return error_response(
                code="INVALID_SIGNATURE", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST
            )
        except PaymentGatewayError as exc:
            return error_response(
                code="VALIDATION_ERROR", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST
            )

        try:
            payment = record_payment_result(provider=gateway.provider, confirmation=confirmation)
        except CheckoutError as exc:
            return checkout_error_response(exc)
        except DatabaseError as exc:
            return infrastructure_error_response(
                exc, action="Payment callback", reference=confirmation.reference
            )

        return Response(
            {
                "reference": confirmation.reference,
                "paymentStatus": payment.status,
                "orderId": str(payment.order_id),
            }
        )
