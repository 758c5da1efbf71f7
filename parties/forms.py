from django import forms

from backoffice.forms import PayloadFormMixin
from .models import Client, Supplier


class ClientForm(PayloadFormMixin, forms.ModelForm):
    payload_aliases = {"phoneNumber": "phone_number"}

    class Meta:
        model = Client
        fields = ["name", "address", "email", "phone_number", "iban", "rib"]

    def validate_unique(self):
        # Duplicates are answered with 409 by the view.
        pass


class SupplierForm(PayloadFormMixin, forms.ModelForm):
    payload_aliases = {
        "contactName": "contact_name",
        "phoneNumber": "phone_number",
    }

    class Meta:
        model = Supplier
        fields = ["name", "contact_name", "address", "email", "phone_number", "iban", "rib", "website"]
