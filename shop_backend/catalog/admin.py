# catalog/admin.py
"""
=====================================================
PATH: catalog/admin.py
=====================================================

Admin rules:
- Variants are edited inline under their product.
- inventory_quantity is editable here for manual stock corrections; checkout
  and cancellation never go through admin.
"""

from __future__ import annotations

from django.contrib import admin

from catalog.models import CustomProduct, Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = (
        "title",
        "sku",
        "position",
        "price_amount",
        "price_currency",
        "inventory_quantity",
        "available_for_sale",
    )
    ordering = ProductVariant.TRACKING_ORDER


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("title", "handle", "min_price_amount", "min_price_currency", "is_active")
    list_filter = ("is_active",)
    search_fields = ("title", "handle")
    prepopulated_fields = {"handle": ("title",)}
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = (
        "__str__",
        "sku",
        "price_amount",
        "inventory_quantity",
        "available_for_sale",
    )
    list_filter = ("available_for_sale",)
    search_fields = ("title", "sku", "product__title")
    list_select_related = ("product",)


@admin.register(CustomProduct)
class CustomProductAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "color", "size", "price_amount", "created_at")
    search_fields = ("title", "user__email")
    readonly_fields = ("design", "created_at")
