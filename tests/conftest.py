from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.customers.models import BusinessType, Customer, CustomerRole
from modules.customers.principal import resolve_principal
from modules.products.models import Product

User = get_user_model()

ADDRESS = {
    "first_name": "Jane",
    "last_name": "Doe",
    "address1": "1 Main Street",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
    "phone": "5550100200",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def admin_user():
    return User.objects.create_user(username="admin", password="testpass123", is_staff=True)


@pytest.fixture()
def b2c_user():
    user = User.objects.create_user(username="consumer", password="testpass123")
    Customer.objects.create(user=user, role=CustomerRole.B2C_CUSTOMER, phone="5550100200")
    return user


@pytest.fixture()
def b2b_user():
    user = User.objects.create_user(username="business", password="testpass123")
    Customer.objects.create(
        user=user,
        role=CustomerRole.B2B_CUSTOMER,
        company_name="Acme Supplies",
        business_type=BusinessType.RETAILER,
        tax_id="12-3456789",
    )
    return user


@pytest.fixture()
def admin_principal(admin_user):
    return resolve_principal(admin_user)


@pytest.fixture()
def b2c_principal(b2c_user):
    return resolve_principal(b2c_user)


@pytest.fixture()
def b2b_principal(b2b_user):
    return resolve_principal(b2b_user)


@pytest.fixture()
def make_product():
    counter = iter(range(1, 1000))

    def _make(**overrides) -> Product:
        n = next(counter)
        fields = {
            "sku": f"SKU-{n:03d}",
            "name": f"Product {n}",
            "base_price": Decimal("10.00"),
            "b2b_price": Decimal("8.00"),
            "b2b_minimum_order": 10,
            "stock": 100,
            "images": [f"https://img.example.com/{n}.jpg"],
        }
        fields.update(overrides)
        return Product.objects.create(**fields)

    return _make


@pytest.fixture()
def order_payload():
    def _payload(*items, **overrides):
        payload = {
            "items": [
                {"product_id": str(product.id), "quantity": quantity}
                for product, quantity in items
            ],
            "payment_method": "card",
            "shipping_address": dict(ADDRESS),
            "billing_address": dict(ADDRESS),
        }
        payload.update(overrides)
        return payload

    return _payload
