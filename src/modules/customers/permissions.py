"""DRF permissions built on the resolved principal."""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.customers.principal import is_admin, resolve_principal


class IsAdminPrincipal(BasePermission):
    message = "Administrative privileges are required."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return is_admin(resolve_principal(user))


class IsCustomerPrincipal(BasePermission):
    """Only B2B or B2C customer accounts may place orders."""

    message = "Only customer accounts can place orders."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return resolve_principal(user).is_customer
