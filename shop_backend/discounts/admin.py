# discounts/admin.py

from django.contrib import admin

from discounts.models import Discount


@admin.register(Discount)
class DiscountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "type",
        "value",
        "min_order_amount",
        "usage_limit",
        "usage_count",
        "active",
        "starts_at",
        "ends_at",
    )
    list_filter = ("type", "active")
    search_fields = ("code", "description")
    readonly_fields = ("usage_count", "created_at", "updated_at")

    @admin.display(description="Used")
    def usage_count(self, obj):
        return obj.usage_count
