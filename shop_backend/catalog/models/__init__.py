# catalog/models/__init__.py

from .custom_product import CustomProduct
from .product import Product, ProductVariant

__all__ = ["Product", "ProductVariant", "CustomProduct"]
