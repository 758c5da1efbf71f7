from decimal import Decimal

from django import forms

from backoffice.forms import PayloadFormMixin
from .models import Role


class RoleForm(PayloadFormMixin, forms.ModelForm):
    payload_aliases = {"roleName": "role_name"}

    class Meta:
        model = Role
        fields = ["role_name", "description"]

    def validate_unique(self):
        # Duplicate names are answered with 409 by the view, not as a field error.
        pass


class UserForm(PayloadFormMixin, forms.Form):
    """Create/update payload for a user and their profile."""
    payload_aliases = {
        "firstname": "first_name",
        "lastname": "last_name",
        "actived": "is_active",
    }

    username = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(required=False)
    first_name = forms.CharField(max_length=150, required=False)
    last_name = forms.CharField(max_length=150, required=False)
    phone = forms.CharField(max_length=50, required=False)
    address = forms.CharField(max_length=255, required=False)
    city = forms.CharField(max_length=100, required=False)
    balance = forms.DecimalField(max_digits=14, decimal_places=2, required=False)
    is_active = forms.BooleanField(required=False)

    def __init__(self, *args, require_password=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["password"].required = require_password

    def clean_balance(self):
        return self.cleaned_data.get("balance") or Decimal("0.00")

    def clean_is_active(self):
        if "is_active" not in self.data:
            return True
        return self.cleaned_data.get("is_active", False)


class LoginForm(PayloadFormMixin, forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(strip=False)
