from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from inventory.models import Product
from parties.models import Client, Supplier


class PaymentStatus(models.TextChoices):
    PAID = "PAID", "Paid"
    UNPAID = "UNPAID", "Unpaid"


class DeliveryStatus(models.TextChoices):
    IN_PROCESS = "IN_PROCESS", "In process"
    SENDING = "SENDING", "Sending"
    DELIVERED = "DELIVERED", "Delivered"


class LineItem(models.Model):
    """
    One priced line of a quote or invoice. total_price is always
    quantity * unit_price, recomputed on save.
    """
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)

    class Meta:
        abstract = True

    def clean(self):
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price cannot be negative."})

    def save(self, *args, **kwargs):
        self.total_price = (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(Decimal("0.01"))
        self.full_clean()
        return super().save(*args, **kwargs)


class PricedDocument(models.Model):
    """Header shared by quotes and invoices: total_amount is derived from items."""
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    date_created = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def items_total(self) -> Decimal:
        agg = self.items.aggregate(s=Sum("total_price", default=Decimal("0.00")))
        return agg["s"] or Decimal("0.00")

    def recompute_total(self):
        self.total_amount = self.items_total()
        self.save(update_fields=["total_amount", "updated_at"])


class Invoice(PricedDocument):
    delivery_date = models.DateField(null=True, blank=True)
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID)
    delivery_status = models.CharField(
        max_length=16, choices=DeliveryStatus.choices, default=DeliveryStatus.IN_PROCESS
    )

    class Meta:
        abstract = True
        ordering = ["-date_created", "-id"]


class ClientInvoice(Invoice):
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="invoices")

    class Meta(Invoice.Meta):
        pass

    def __str__(self):
        return f"Client invoice #{self.pk}"


class ClientInvoiceItem(LineItem):
    invoice = models.ForeignKey(ClientInvoice, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="client_invoice_items")


class SupplierInvoice(Invoice):
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="invoices")
    # Set the first time the goods are delivered; stock moves only once.
    stock_received_at = models.DateTimeField(null=True, blank=True, editable=False)

    class Meta(Invoice.Meta):
        pass

    def __str__(self):
        return f"Supplier invoice #{self.pk}"


class SupplierInvoiceItem(LineItem):
    invoice = models.ForeignKey(SupplierInvoice, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="supplier_invoice_items")
