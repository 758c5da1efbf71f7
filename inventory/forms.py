from django import forms

from backoffice.forms import PayloadFormMixin
from .models import Category, Product


class CategoryForm(PayloadFormMixin, forms.ModelForm):
    class Meta:
        model = Category
        fields = ["name"]

    def validate_unique(self):
        # Duplicate names are answered with 409 by the view.
        pass


class ProductForm(PayloadFormMixin, forms.ModelForm):
    payload_aliases = {
        "supplierPrice": "supplier_price",
        "sellingPrice": "selling_price",
        "stockQuantity": "stock_quantity",
        "reorderLevel": "reorder_level",
        "supplierId": "supplier",
        "categoryId": "category",
    }

    class Meta:
        model = Product
        fields = [
            "name", "reference", "supplier_price", "selling_price", "stock_quantity",
            "reorder_level", "description", "supplier", "category",
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["reorder_level"].required = False
        self.fields["stock_quantity"].required = False

    def clean_reorder_level(self):
        value = self.cleaned_data.get("reorder_level")
        return 10 if value is None else value

    def clean_stock_quantity(self):
        value = self.cleaned_data.get("stock_quantity")
        return 0 if value is None else value

    def validate_unique(self):
        # Duplicate references are answered with 409 by the view.
        pass
