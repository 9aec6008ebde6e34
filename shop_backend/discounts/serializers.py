# discounts/serializers.py

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from discounts.models import Discount


# ---------------- INPUT (PREVIEW) ----------------
class DiscountValidateInputSerializer(serializers.Serializer):
    code = serializers.CharField(required=False, allow_blank=True, default="")
    orderAmount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class DiscountPreviewSerializer(serializers.Serializer):
    code = serializers.CharField()
    type = serializers.CharField()
    value = serializers.DecimalField(max_digits=10, decimal_places=2)
    usageLimit = serializers.IntegerField(allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    discountedSubtotal = serializers.DecimalField(max_digits=12, decimal_places=2)


class DiscountValidateResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    discount = DiscountPreviewSerializer()


# ---------------- ADMIN CRUD ----------------
class DiscountSerializer(serializers.ModelSerializer):
    minOrderAmount = serializers.DecimalField(
        source="min_order_amount",
        max_digits=12,
        decimal_places=2,
        required=False,
        allow_null=True,
    )
    startsAt = serializers.DateTimeField(source="starts_at", required=False, allow_null=True)
    endsAt = serializers.DateTimeField(source="ends_at", required=False, allow_null=True)
    usageLimit = serializers.IntegerField(
        source="usage_limit", required=False, allow_null=True, min_value=1
    )
    usageCount = serializers.IntegerField(source="usage_count", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Discount
        fields = [
            "id",
            "code",
            "description",
            "type",
            "value",
            "minOrderAmount",
            "startsAt",
            "endsAt",
            "usageLimit",
            "usageCount",
            "active",
            "createdAt",
        ]
        read_only_fields = ["id", "usageCount", "createdAt"]

    def _save_validated(self, instance: Discount) -> Discount:
        # Model.save() runs full_clean(); surface its errors as a 400.
        try:
            instance.save()
        except DjangoValidationError as exc:
            raise serializers.ValidationError(
                getattr(exc, "message_dict", None) or {"detail": exc.messages}
            ) from exc
        return instance

    def create(self, validated_data):
        return self._save_validated(Discount(**validated_data))

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        return self._save_validated(instance)
