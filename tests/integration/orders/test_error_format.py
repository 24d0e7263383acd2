"""Every failure uses the same error body."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.domain.exceptions import TransientInfrastructureError

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _assert_shape(body):
    assert set(body) == {"type", "errors"}
    for error in body["errors"]:
        assert {"code", "detail", "attr"} <= set(error)


def test_unauthenticated_shape(api_client):
    response = api_client.get(URL)

    assert response.status_code == 401
    _assert_shape(response.json())
    assert response.json()["errors"][0]["code"] == "not_authenticated"


def test_validation_shape(api_client, b2c_user):
    api_client.force_authenticate(b2c_user)

    response = api_client.post(URL, {"items": []}, format="json")

    assert response.status_code == 400
    body = response.json()
    _assert_shape(body)
    assert body["type"] == "validation_error"
    attrs = {error["attr"] for error in body["errors"]}
    assert {"payment_method", "shipping_address", "billing_address"} <= attrs


def test_storage_outage_is_503_with_retry_after(
    api_client, b2c_user, make_product, order_payload
):
    product = make_product()
    api_client.force_authenticate(b2c_user)

    with patch.object(
        ProductDjangoRepository,
        "get_product",
        side_effect=TransientInfrastructureError("Storage unavailable during get_by_id."),
    ):
        response = api_client.post(URL, order_payload((product, 1)), format="json")

    assert response.status_code == 503
    assert response["Retry-After"] == "2"
    body = response.json()
    _assert_shape(body)
    assert body["type"] == "server_error"
    assert body["errors"][0]["code"] == "transient_infrastructure_error"


def test_not_found_shape(api_client, admin_user):
    api_client.force_authenticate(admin_user)

    response = api_client.get(f"{URL}not-an-id/")

    assert response.status_code == 404
    _assert_shape(response.json())
