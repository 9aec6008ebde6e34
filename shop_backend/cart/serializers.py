# cart/serializers.py

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from cart.models import Cart, CartLine


def _price(amount, currency) -> dict:
    return {"amount": f"{Decimal(amount or 0):.2f}", "currencyCode": currency}


# ---------------- INPUT ----------------
class AddCartLineInputSerializer(serializers.Serializer):
    cartId = serializers.UUIDField(required=False, allow_null=True)
    productId = serializers.UUIDField(required=False, allow_null=True)
    variantId = serializers.UUIDField(required=False, allow_null=True)
    customProductId = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, default=1)


class UpdateCartLineInputSerializer(serializers.Serializer):
    cartId = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=0)


class CartQuerySerializer(serializers.Serializer):
    cartId = serializers.UUIDField(required=False, allow_null=True)


# ---------------- OUTPUT ----------------
class CartLineSerializer(serializers.ModelSerializer):
    product = serializers.SerializerMethodField()
    variant = serializers.SerializerMethodField()
    customProduct = serializers.SerializerMethodField()
    price = serializers.SerializerMethodField()
    subtotal = serializers.SerializerMethodField()

    class Meta:
        model = CartLine
        fields = ["id", "quantity", "product", "variant", "customProduct", "price", "subtotal"]
        read_only_fields = fields

    def get_product(self, obj):
        if obj.product is None:
            return None
        return {"id": obj.product.id, "title": obj.product.title, "handle": obj.product.handle}

    def get_variant(self, obj):
        if obj.variant is None:
            return None
        return {
            "id": obj.variant.id,
            "title": obj.variant.title,
            "selectedOptions": obj.variant.selected_options,
        }

    def get_customProduct(self, obj):
        cp = obj.custom_product
        if cp is None:
            return None
        return {
            "id": cp.id,
            "title": cp.title,
            "color": cp.color,
            "size": cp.size,
            "previewUrl": cp.preview_url,
        }

    def get_price(self, obj):
        return _price(obj.price_amount, obj.price_currency)

    def get_subtotal(self, obj):
        return _price(obj.line_total, obj.price_currency)


class CartSerializer(serializers.ModelSerializer):
    totalQuantity = serializers.IntegerField(source="total_quantity", read_only=True)
    subtotal = serializers.SerializerMethodField()
    lines = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ["id", "totalQuantity", "subtotal", "lines"]
        read_only_fields = fields

    def get_subtotal(self, obj):
        return _price(obj.subtotal_amount, obj.currency)

    def get_lines(self, obj):
        lines = obj.lines.select_related("product", "variant", "custom_product").order_by(
            "created_at"
        )
        return CartLineSerializer(lines, many=True).data
