from django.db import models


class Client(models.Model):
    name = models.CharField(max_length=200)
    address = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=50)
    iban = models.CharField(max_length=64, blank=True, default="")
    rib = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def deletion_blocker(self):
        """Reason this client cannot be deleted, or None."""
        if self.invoices.exists():
            return "Cannot delete client with associated invoices"
        if self.quotes.exists():
            return "Cannot delete client with associated quotes"
        return None


class Supplier(models.Model):
    name = models.CharField(max_length=200)
    contact_name = models.CharField(max_length=200, blank=True, default="")
    address = models.CharField(max_length=255)
    email = models.EmailField()
    phone_number = models.CharField(max_length=50)
    iban = models.CharField(max_length=64, blank=True, default="")
    rib = models.CharField(max_length=64, blank=True, default="")
    website = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def deletion_blocker(self):
        """Reason this supplier cannot be deleted, or None."""
        if self.products.exists():
            return "Cannot delete supplier with associated products"
        if self.invoices.exists():
            return "Cannot delete supplier with associated invoices"
        if self.quotes.exists():
            return "Cannot delete supplier with associated quotes"
        return None
