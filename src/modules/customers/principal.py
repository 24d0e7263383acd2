"""Principal resolution.

A ``Principal`` is the authenticated actor as order intake sees it: a
user id and one role.  Roles are resolved here once per request so the
rest of the code never inspects auth models directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from modules.customers.models import CustomerRole


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == CustomerRole.ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role in (CustomerRole.B2B_CUSTOMER, CustomerRole.B2C_CUSTOMER)


def resolve_principal(user: Any) -> Principal:
    """Build a ``Principal`` from a Django user.

    Staff and superusers are admins.  Otherwise the customer profile's
    role applies; accounts without a profile default to B2C.
    """
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return Principal(user_id=user.pk, role=CustomerRole.ADMIN)
    profile = getattr(user, "customer", None)
    role = profile.role if profile is not None else CustomerRole.B2C_CUSTOMER
    return Principal(user_id=user.pk, role=role)


def is_admin(principal: Principal) -> bool:
    return principal.is_admin
