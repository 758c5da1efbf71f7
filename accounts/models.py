from decimal import Decimal

from django.conf import settings
from django.db import models


class Role(models.Model):
    role_name = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["role_name"]

    def __str__(self):
        return self.role_name

    def deletion_blocker(self):
        """Reason this role cannot be deleted, or None."""
        if self.assignments.exists():
            return "Cannot delete role that is assigned to users"
        return None


class UserRole(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="role_assignments")
    role = models.ForeignKey(Role, on_delete=models.PROTECT, related_name="assignments")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="accounts_userrole_user_role_uniq"),
        ]


class UserProfile(models.Model):
    """Contact details kept next to Django's user record."""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    def __str__(self):
        return f"Profile of {self.user}"
