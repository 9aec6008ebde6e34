# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem, Payment


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "variant",
        "custom_product",
        "title",
        "quantity",
        "price_amount",
        "price_currency",
    )


class PaymentInline(admin.StackedInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = (
        "method",
        "provider",
        "status",
        "amount",
        "currency",
        "provider_reference",
        "redirect_url",
        "paid_at",
    )
    exclude = ("provider_payload",)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "user",
        "status",
        "payment_method",
        "total_amount",
        "total_currency",
        "created_at",
    )
    list_filter = ("status", "payment_method", "created_at")
    search_fields = ("order_number", "user__email", "tracking_number")
    readonly_fields = (
        "order_number",
        "user",
        "status",
        "subtotal_amount",
        "discount_amount",
        "surcharge_amount",
        "total_amount",
        "total_currency",
        "applied_discount",
        "shipping_address",
        "billing_address",
        "canceled_at",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline, PaymentInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("order", "method", "provider", "status", "amount", "currency", "created_at")
    list_filter = ("method", "status")
    search_fields = ("order__order_number", "provider_reference")
    readonly_fields = ("order", "provider_reference", "provider_payload", "paid_at")
