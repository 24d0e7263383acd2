"""GET /api/v1/me."""

from __future__ import annotations

import pytest
from rest_framework_simplejwt.tokens import AccessToken

pytestmark = pytest.mark.integration

URL = "/api/v1/me"


def test_requires_authentication(api_client):
    assert api_client.get(URL).status_code == 401


def test_rejects_bad_token(api_client):
    api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
    assert api_client.get(URL).status_code == 401


def test_b2b_principal_with_jwt(api_client, b2b_user):
    token = AccessToken.for_user(b2b_user)
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    response = api_client.get(URL)

    assert response.status_code == 200
    assert response.json() == {
        "user_id": b2b_user.pk,
        "role": "b2b_customer",
        "is_admin": False,
        "channel": "B2B",
    }


def test_admin_principal(api_client, admin_user):
    api_client.force_authenticate(admin_user)

    body = api_client.get(URL).json()

    assert body["is_admin"] is True
    assert body["role"] == "admin"
