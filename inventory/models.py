from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from parties.models import Supplier


class Category(models.Model):
    """Product category (flat, no hierarchy)."""
    name = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Categories"

    def __str__(self):
        return self.name

    def deletion_blocker(self):
        if self.products.exists():
            return "Cannot delete category that contains products"
        return None


class Product(models.Model):
    """
    Product master. stock_quantity is what is on hand; provisional_stock is
    what converted quotes have promised in (supplier) or out (client) but is
    not yet delivered.
    """
    name = models.CharField(max_length=200)
    reference = models.CharField(max_length=64, unique=True)
    supplier_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    stock_quantity = models.IntegerField(default=0)
    provisional_stock = models.IntegerField(default=0)
    reorder_level = models.IntegerField(default=10)
    description = models.TextField(blank=True, default="")
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="products")
    category = models.ForeignKey(
        Category, null=True, blank=True, on_delete=models.PROTECT, related_name="products"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.reference or self.name or str(self.pk)

    def clean(self):
        if self.supplier_price is not None and self.supplier_price < 0:
            raise ValidationError({"supplier_price": "Price cannot be negative."})
        if self.selling_price is not None and self.selling_price < 0:
            raise ValidationError({"selling_price": "Price cannot be negative."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError({"stock_quantity": "Stock cannot be negative."})

    @property
    def profit_margin(self) -> Decimal:
        """Margin on selling price, in percent."""
        if not self.selling_price:
            return Decimal("0.00")
        margin = (self.selling_price - self.supplier_price) / self.selling_price * 100
        return margin.quantize(Decimal("0.01"))

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.reorder_level

    def deletion_blocker(self):
        """Reason this product cannot be deleted, or None."""
        usage = (
            self.client_quote_items.count()
            + self.supplier_quote_items.count()
            + self.client_invoice_items.count()
            + self.supplier_invoice_items.count()
        )
        if usage:
            return "Cannot delete product as it is used in invoices or quotes"
        return None
