# Generated manually for Category and Product

import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("parties", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "Categories",
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("reference", models.CharField(max_length=64, unique=True)),
                ("supplier_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("selling_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("stock_quantity", models.IntegerField(default=0)),
                ("provisional_stock", models.IntegerField(default=0)),
                ("reorder_level", models.IntegerField(default=10)),
                ("description", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="products", to="inventory.category")),
                ("supplier", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="products", to="parties.supplier")),
            ],
            options={
                "ordering": ["name"],
            },
        ),
    ]
