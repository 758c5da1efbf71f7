# Generated manually for client and supplier invoices

import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
        ("parties", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ClientInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("date_created", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("delivery_date", models.DateField(blank=True, null=True)),
                ("payment_status", models.CharField(choices=[("PAID", "Paid"), ("UNPAID", "Unpaid")], default="UNPAID", max_length=16)),
                ("delivery_status", models.CharField(choices=[("IN_PROCESS", "In process"), ("SENDING", "Sending"), ("DELIVERED", "Delivered")], default="IN_PROCESS", max_length=16)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="parties.client")),
            ],
            options={
                "ordering": ["-date_created", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="ClientInvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="billing.clientinvoice")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="client_invoice_items", to="inventory.product")),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="SupplierInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("date_created", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("delivery_date", models.DateField(blank=True, null=True)),
                ("payment_status", models.CharField(choices=[("PAID", "Paid"), ("UNPAID", "Unpaid")], default="UNPAID", max_length=16)),
                ("delivery_status", models.CharField(choices=[("IN_PROCESS", "In process"), ("SENDING", "Sending"), ("DELIVERED", "Delivered")], default="IN_PROCESS", max_length=16)),
                ("stock_received_at", models.DateTimeField(blank=True, editable=False, null=True)),
                ("supplier", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="parties.supplier")),
            ],
            options={
                "ordering": ["-date_created", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="SupplierInvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="billing.supplierinvoice")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="supplier_invoice_items", to="inventory.product")),
            ],
            options={
                "abstract": False,
            },
        ),
    ]
