"""Principal resolution and the customer profile."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from modules.customers.models import Customer, CustomerRole
from modules.customers.principal import is_admin, resolve_principal

pytestmark = pytest.mark.unit

User = get_user_model()


def test_staff_is_admin(admin_user):
    principal = resolve_principal(admin_user)
    assert principal.role == CustomerRole.ADMIN
    assert is_admin(principal)
    assert not principal.is_customer


def test_superuser_is_admin():
    user = User.objects.create_superuser("root", password="testpass123")
    assert resolve_principal(user).is_admin


def test_profile_role_is_used(b2b_user, b2c_user):
    assert resolve_principal(b2b_user).role == CustomerRole.B2B_CUSTOMER
    assert resolve_principal(b2c_user).role == CustomerRole.B2C_CUSTOMER


def test_user_without_profile_is_b2c():
    user = User.objects.create_user("plain", password="testpass123")
    principal = resolve_principal(user)
    assert principal.role == CustomerRole.B2C_CUSTOMER
    assert principal.user_id == user.pk
    assert principal.is_customer


def test_b2b_profile_requires_company_fields():
    user = User.objects.create_user("corp", password="testpass123")
    customer = Customer(user=user, role=CustomerRole.B2B_CUSTOMER)
    with pytest.raises(ValidationError) as exc_info:
        customer.full_clean()
    assert {"company_name", "business_type", "tax_id"} <= set(exc_info.value.message_dict)


def test_tax_id_is_masked_in_str(b2b_user):
    text = str(b2b_user.customer)
    assert "12-3456789" not in text
    assert "6789" in text
