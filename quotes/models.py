from django.db import models

from billing.models import ClientInvoice, LineItem, PricedDocument, SupplierInvoice
from inventory.models import Product
from parties.models import Client, Supplier


class QuoteStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"              # editable
    PENDING = "PENDING", "Pending"        # sent, waiting for an answer
    CONFIRMED = "CONFIRMED", "Confirmed"  # accepted by the client
    APPROVED = "APPROVED", "Approved"     # internal approval
    REJECTED = "REJECTED", "Rejected"
    CONVERTED = "CONVERTED", "Converted"  # turned into an invoice


class Quote(PricedDocument):
    valid_until = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=QuoteStatus.choices, default=QuoteStatus.DRAFT)
    notes = models.TextField(blank=True, default="")

    class Meta:
        abstract = True
        ordering = ["-date_created", "-id"]

    @property
    def is_editable(self) -> bool:
        return self.status == QuoteStatus.DRAFT


class ClientQuote(Quote):
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="quotes")
    converted_invoice = models.OneToOneField(
        ClientInvoice, null=True, blank=True, on_delete=models.SET_NULL,
        related_name="source_quote", editable=False,
    )

    class Meta(Quote.Meta):
        pass

    def __str__(self):
        return f"Client quote #{self.pk}"


class ClientQuoteItem(LineItem):
    quote = models.ForeignKey(ClientQuote, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="client_quote_items")


class SupplierQuote(Quote):
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="quotes")
    converted_invoice = models.OneToOneField(
        SupplierInvoice, null=True, blank=True, on_delete=models.SET_NULL,
        related_name="source_quote", editable=False,
    )

    class Meta(Quote.Meta):
        pass

    def __str__(self):
        return f"Supplier quote #{self.pk}"


class SupplierQuoteItem(LineItem):
    quote = models.ForeignKey(SupplierQuote, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="supplier_quote_items")
