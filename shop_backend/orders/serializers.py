# orders/serializers.py

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from orders.models import Order, OrderItem, Payment
from users.serializers import AddressSerializer


def _money(amount) -> str:
    return f"{Decimal(amount or 0):.2f}"


# ============================================================
# INPUT
# ============================================================


class SnapshotLineInputSerializer(serializers.Serializer):
    productId = serializers.UUIDField(source="product_id", required=False, allow_null=True)
    variantId = serializers.UUIDField(source="variant_id", required=False, allow_null=True)
    customProductId = serializers.UUIDField(
        source="custom_product_id", required=False, allow_null=True
    )
    quantity = serializers.IntegerField(min_value=1)
    priceAmount = serializers.DecimalField(
        source="price_amount", max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    priceCurrency = serializers.CharField(
        source="price_currency", max_length=3, required=False, allow_blank=True
    )


class CreateOrderInputSerializer(serializers.Serializer):
    cartId = serializers.UUIDField(required=False, allow_null=True)
    cartSnapshot = SnapshotLineInputSerializer(many=True, required=False)
    shippingAddress = AddressSerializer(required=False, allow_null=True)
    shippingAddressId = serializers.UUIDField(required=False, allow_null=True)
    billingAddress = AddressSerializer(required=False, allow_null=True)
    billingAddressId = serializers.UUIDField(required=False, allow_null=True)
    paymentMethod = serializers.CharField(required=False, allow_blank=True, max_length=32)
    discountCode = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)

    def validate(self, attrs):
        if not attrs.get("shippingAddress") and not attrs.get("shippingAddressId"):
            raise serializers.ValidationError(
                {"shippingAddress": "Shipping address or shippingAddressId is required."}
            )
        return attrs


class CancelOrderInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class OrderStatusUpdateInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Order.STATUS_CHOICES])
    trackingNumber = serializers.CharField(required=False, allow_blank=True, max_length=128)
    trackingCompany = serializers.CharField(required=False, allow_blank=True, max_length=128)
    notes = serializers.CharField(required=False, allow_blank=True)


class RefundOrderInputSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)


# ============================================================
# OUTPUT
# ============================================================


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.UUIDField(source="product_id", read_only=True)
    variantId = serializers.UUIDField(source="variant_id", read_only=True)
    customProductId = serializers.UUIDField(source="custom_product_id", read_only=True)
    price = serializers.SerializerMethodField()
    lineTotal = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "title",
            "productId",
            "variantId",
            "customProductId",
            "quantity",
            "price",
            "lineTotal",
        ]
        read_only_fields = fields

    def get_price(self, obj):
        return {"amount": _money(obj.price_amount), "currencyCode": obj.price_currency}

    def get_lineTotal(self, obj):
        return {"amount": _money(obj.line_total), "currencyCode": obj.price_currency}


class PaymentSerializer(serializers.ModelSerializer):
    amount = serializers.SerializerMethodField()
    redirectUrl = serializers.CharField(source="redirect_url", read_only=True)
    providerReference = serializers.CharField(source="provider_reference", read_only=True)

    class Meta:
        model = Payment
        fields = ["id", "method", "provider", "status", "amount", "currency", "redirectUrl", "providerReference"]
        read_only_fields = fields

    def get_amount(self, obj):
        return _money(obj.amount)


class OrderSerializer(serializers.ModelSerializer):
    orderNumber = serializers.CharField(source="order_number", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    subtotal = serializers.SerializerMethodField()
    discountAmount = serializers.SerializerMethodField()
    surchargeAmount = serializers.SerializerMethodField()
    totalAmount = serializers.SerializerMethodField()
    totalCurrency = serializers.CharField(source="total_currency", read_only=True)
    discount = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)
    payment = serializers.SerializerMethodField()
    shippingAddress = AddressSerializer(source="shipping_address", read_only=True)
    billingAddress = AddressSerializer(source="billing_address", read_only=True)
    cancelReason = serializers.CharField(source="cancel_reason", read_only=True)
    trackingNumber = serializers.CharField(source="tracking_number", read_only=True)
    trackingCompany = serializers.CharField(source="tracking_company", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    canceledAt = serializers.DateTimeField(source="canceled_at", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "orderNumber",
            "status",
            "paymentMethod",
            "subtotal",
            "discountAmount",
            "surchargeAmount",
            "totalAmount",
            "totalCurrency",
            "discount",
            "items",
            "payment",
            "shippingAddress",
            "billingAddress",
            "cancelReason",
            "trackingNumber",
            "trackingCompany",
            "createdAt",
            "updatedAt",
            "canceledAt",
        ]
        read_only_fields = fields

    def get_subtotal(self, obj):
        return _money(obj.subtotal_amount)

    def get_discountAmount(self, obj):
        return _money(obj.discount_amount)

    def get_surchargeAmount(self, obj):
        return _money(obj.surcharge_amount)

    def get_totalAmount(self, obj):
        return _money(obj.total_amount)

    def get_discount(self, obj):
        d = obj.applied_discount
        if d is None:
            return None
        return {"code": d.code, "type": d.type, "value": str(d.value)}

    def get_payment(self, obj):
        payment = getattr(obj, "payment", None)
        if payment is None:
            return None
        return PaymentSerializer(payment).data


class AdminOrderSerializer(OrderSerializer):
    customer = serializers.SerializerMethodField()
    adminNotes = serializers.CharField(source="admin_notes", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["customer", "adminNotes"]
        read_only_fields = fields

    def get_customer(self, obj):
        return {"id": obj.user_id, "email": obj.user.email, "name": obj.user.full_name}
