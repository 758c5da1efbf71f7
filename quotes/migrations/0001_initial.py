# Generated manually for client and supplier quotes

import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models

STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("PENDING", "Pending"),
    ("CONFIRMED", "Confirmed"),
    ("APPROVED", "Approved"),
    ("REJECTED", "Rejected"),
    ("CONVERTED", "Converted"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("billing", "0001_initial"),
        ("inventory", "0001_initial"),
        ("parties", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ClientQuote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("date_created", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="DRAFT", max_length=16)),
                ("notes", models.TextField(blank=True, default="")),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to="parties.client")),
                ("converted_invoice", models.OneToOneField(blank=True, editable=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="source_quote", to="billing.clientinvoice")),
            ],
            options={
                "ordering": ["-date_created", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="ClientQuoteItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("quote", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="quotes.clientquote")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="client_quote_items", to="inventory.product")),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="SupplierQuote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("date_created", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="DRAFT", max_length=16)),
                ("notes", models.TextField(blank=True, default="")),
                ("supplier", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to="parties.supplier")),
                ("converted_invoice", models.OneToOneField(blank=True, editable=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="source_quote", to="billing.supplierinvoice")),
            ],
            options={
                "ordering": ["-date_created", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="SupplierQuoteItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("quote", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="quotes.supplierquote")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="supplier_quote_items", to="inventory.product")),
            ],
            options={
                "abstract": False,
            },
        ),
    ]
