from django import forms

from backoffice.forms import PayloadFormMixin
from inventory.models import Product
from parties.models import Client, Supplier
from .models import DeliveryStatus, PaymentStatus


class LineItemForm(PayloadFormMixin, forms.Form):
    """One quote/invoice line. Any client-sent totalPrice is ignored."""
    payload_aliases = {"productId": "product", "unitPrice": "unit_price"}

    product = forms.ModelChoiceField(queryset=Product.objects.all())
    quantity = forms.IntegerField(min_value=1)
    unit_price = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2)


def clean_line_items(raw_items):
    """
    Validate a JSON items array.
    Returns (lines, errors): lines are cleaned dicts, errors maps "items[i].field" to messages.
    """
    if not isinstance(raw_items, list) or not raw_items:
        return [], {"items": ["At least one item is required."]}
    lines, errors = [], {}
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            errors[f"items[{index}]"] = ["Item must be an object."]
            continue
        form = LineItemForm.from_payload(raw)
        if form.is_valid():
            lines.append(form.cleaned_data)
        else:
            for name, messages in form.errors.items():
                errors[f"items[{index}].{name}"] = [str(m) for m in messages]
    return lines, errors


class InvoiceForm(PayloadFormMixin, forms.Form):
    payload_aliases = {
        "deliveryDate": "delivery_date",
        "updateStock": "update_stock",
    }

    delivery_date = forms.DateField(required=False)
    payment_status = forms.ChoiceField(choices=PaymentStatus.choices, required=False)
    delivery_status = forms.ChoiceField(choices=DeliveryStatus.choices, required=False)
    update_stock = forms.BooleanField(required=False)

    def clean_payment_status(self):
        return self.cleaned_data.get("payment_status") or PaymentStatus.UNPAID

    def clean_delivery_status(self):
        return self.cleaned_data.get("delivery_status") or DeliveryStatus.IN_PROCESS


class ClientInvoiceForm(InvoiceForm):
    payload_aliases = {**InvoiceForm.payload_aliases, "clientId": "client"}

    client = forms.ModelChoiceField(queryset=Client.objects.all())


class SupplierInvoiceForm(InvoiceForm):
    payload_aliases = {**InvoiceForm.payload_aliases, "supplierId": "supplier"}

    supplier = forms.ModelChoiceField(queryset=Supplier.objects.all())


class InvoiceStatusForm(PayloadFormMixin, forms.Form):
    payment_status = forms.ChoiceField(choices=PaymentStatus.choices, required=False)
    delivery_status = forms.ChoiceField(choices=DeliveryStatus.choices, required=False)

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("payment_status") and not cleaned.get("delivery_status"):
            raise forms.ValidationError("No status provided to update.")
        return cleaned
