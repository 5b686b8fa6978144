"""
Permission classes for blood bank operations.
"""
from rest_framework.permissions import BasePermission

from .models import BLOOD_BANK_ROLES


class IsBloodBankStaff(BasePermission):
    """Allow access only to authenticated users with a blood bank role."""
    message = (
        f"Access denied. Your role is not authorized for blood bank operations. "
        f"Required roles: {', '.join(BLOOD_BANK_ROLES)}."
    )

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in BLOOD_BANK_ROLES)


class IsBloodBankAdmin(BasePermission):
    """Only blood bank admins (request approval, unit discard)."""
    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == "admin")
