# discounts/views.py

"""
DISCOUNT API VIEWS

- POST /api/discount/validate/      checkout-page preview (AllowAny)
- /api/discount/admin/...           staff CRUD

The preview runs the same evaluator as checkout; see
discounts.services.evaluator.
"""

from __future__ import annotations

import logging

from django.db.models import ProtectedError
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from backend.responses import error_response
from discounts.models import Discount
from discounts.serializers import (
    DiscountSerializer,
    DiscountValidateInputSerializer,
    DiscountValidateResponseSerializer,
)
from discounts.services.evaluator import evaluate_discount

logger = logging.getLogger(__name__)


class PublicWriteThrottle(AnonRateThrottle):
    scope = "public_write"


class DiscountValidateView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        request=DiscountValidateInputSerializer,
        responses={
            200: DiscountValidateResponseSerializer,
            400: OpenApiResponse(description="Invalid, expired, exhausted or below minimum"),
            429: OpenApiResponse(description="Rate limited"),
        },
        description="Preview a discount code against an order amount.",
        tags=["Discounts"],
    )
    def post(self, request):
        s = DiscountValidateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = evaluate_discount(code=data["code"], order_subtotal=data["orderAmount"])
        if not result.valid:
            return error_response(
                code=result.error_code,
                message=result.reason,
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        discount = result.discount
        return Response(
            {
                "message": "Discount applied successfully",
                "discount": {
                    "code": discount.code,
                    "type": discount.type,
                    "value": str(discount.value),
                    "usageLimit": discount.usage_limit,
                    "amount": str(result.amount),
                    "discountedSubtotal": str(result.discounted_subtotal),
                },
            }
        )


@extend_schema(tags=["Discounts (Admin)"])
class DiscountAdminViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAdminUser]
    serializer_class = DiscountSerializer
    queryset = Discount.objects.all().order_by("-created_at")
    filterset_fields = ["active", "type"]

    def destroy(self, request, *args, **kwargs):
        discount = self.get_object()
        try:
            discount.delete()
        except ProtectedError:
            logger.info(
                "Refused to delete redeemed discount",
                extra={"discount_id": str(discount.id), "code": discount.code},
            )
            return error_response(
                code="DISCOUNT_IN_USE",
                message="Discount has been used by orders; deactivate it instead",
                http_status=status.HTTP_409_CONFLICT,
            )
        return Response({"message": "Discount deleted"}, status=status.HTTP_200_OK)
