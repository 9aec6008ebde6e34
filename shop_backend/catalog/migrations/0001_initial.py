import uuid

import catalog.models.custom_product
import catalog.models.product
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("title", models.CharField(db_index=True, max_length=255)),
                ("handle", models.SlugField(max_length=255, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                ("min_price_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "min_price_currency",
                    models.CharField(
                        default=catalog.models.product._default_currency, max_length=3
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, default="", max_length=128)),
                ("position", models.PositiveIntegerField(default=0)),
                ("price_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "price_currency",
                    models.CharField(
                        default=catalog.models.product._default_currency, max_length=3
                    ),
                ),
                ("inventory_quantity", models.IntegerField(default=0)),
                ("available_for_sale", models.BooleanField(default=True)),
                ("selected_options", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["product", "position"], name="catalog_variant_position_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomProduct",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("color", models.CharField(blank=True, default="", max_length=64)),
                ("size", models.CharField(blank=True, default="", max_length=32)),
                ("price_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "price_currency",
                    models.CharField(
                        default=catalog.models.custom_product._default_currency,
                        max_length=3,
                    ),
                ),
                ("preview_url", models.URLField(blank=True, default="")),
                ("design", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="custom_products",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
