"""
Custom permission classes for role and hospital based access control.
"""
from rest_framework.permissions import BasePermission

HOSPITAL_ROLE = "hospital"
ADMIN_ROLE = "admin"


class IsHospitalStaff(BasePermission):
    """Hospital staff bound to a hospital; the binding is the caller's facility identity."""
    message = "only staff bound to a hospital may use matching"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(
            user and user.is_authenticated
            and getattr(user, "role", None) == HOSPITAL_ROLE
            and getattr(user, "hospital_id", None)
        )


class IsAdminRole(BasePermission):
    """Allow access only to portal administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == ADMIN_ROLE)

