from django import forms

from backoffice.forms import PayloadFormMixin
from parties.models import Client, Supplier
from .models import QuoteStatus


class QuoteForm(PayloadFormMixin, forms.Form):
    """Quote header. Items are validated separately with billing.forms.clean_line_items."""
    payload_aliases = {"validUntil": "valid_until"}

    valid_until = forms.DateField(required=False)
    notes = forms.CharField(required=False)


class ClientQuoteForm(QuoteForm):
    payload_aliases = {**QuoteForm.payload_aliases, "clientId": "client"}

    client = forms.ModelChoiceField(queryset=Client.objects.all())


class SupplierQuoteForm(QuoteForm):
    payload_aliases = {**QuoteForm.payload_aliases, "supplierId": "supplier"}

    supplier = forms.ModelChoiceField(queryset=Supplier.objects.all())


class QuoteStatusForm(PayloadFormMixin, forms.Form):
    status = forms.ChoiceField(
        choices=QuoteStatus.choices,
        error_messages={"invalid_choice": "Invalid status", "required": "Invalid status"},
    )


class ConvertQuoteForm(PayloadFormMixin, forms.Form):
    payload_aliases = {"deliveryDate": "delivery_date"}

    delivery_date = forms.DateField(
        error_messages={"required": "deliveryDate is required", "invalid": "deliveryDate must be a date (YYYY-MM-DD)"},
    )
