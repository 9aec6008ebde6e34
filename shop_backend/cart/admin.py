# cart/admin.py

from django.contrib import admin

from cart.models import Cart, CartLine


class CartLineInline(admin.TabularInline):
    model = CartLine
    extra = 0
    fields = ("product", "variant", "custom_product", "quantity", "price_amount", "price_currency")
    readonly_fields = fields
    can_delete = False


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "total_quantity", "updated_at")
    search_fields = ("id", "user__email")
    readonly_fields = ("total_quantity", "created_at", "updated_at")
    inlines = [CartLineInline]
