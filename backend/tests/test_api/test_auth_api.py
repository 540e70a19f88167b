"""
API tests for signup, login and the current user

Author: TM3
Date: 2025-10-17
"""
import json
from unittest.mock import patch

from factorybay.core.config import settings
from factorybay.core.exceptions import AuthenticationError, ConflictError
from factorybay.domain.user import User
from factorybay.services.guest_cart import GUEST_CART_COOKIE

JANE = User(id="user-1", email="jane@example.com", first_name="Jane")


@patch("factorybay.api.auth.AuthService")
def test_signup_sets_auth_cookie(mock_service, client):
    mock_service.return_value.signup.return_value = (JANE, "signed.jwt.token")

    response = client.post("/api/v1/auth/signup", json={"email": "jane@example.com", "password": "Passw0rd!"})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["token"] == "signed.jwt.token"
    assert data["user"]["firstName"] == "Jane"
    assert response.cookies[settings.AUTH_COOKIE_NAME] == "signed.jwt.token"


@patch("factorybay.api.auth.AuthService")
def test_signup_with_taken_email(mock_service, client):
    mock_service.return_value.signup.side_effect = ConflictError("An account with this email already exists")

    response = client.post("/api/v1/auth/signup", json={"email": "jane@example.com", "password": "Passw0rd!"})

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "An account with this email already exists"}


@patch("factorybay.api.auth.AuthService")
def test_bad_credentials(mock_service, client):
    mock_service.return_value.login.side_effect = AuthenticationError("Invalid email or password")

    response = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "nope"})

    assert response.status_code == 401


@patch("factorybay.api.auth.merge_guest_cart_into_user", return_value=1)
@patch("factorybay.api.auth.AuthService")
def test_login_merges_guest_cart(mock_service, mock_merge, client):
    mock_service.return_value.login.return_value = (JANE, "signed.jwt.token")
    client.cookies.set(GUEST_CART_COOKIE, json.dumps([{"variantId": "var-1", "quantity": 2}]))

    response = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "Passw0rd!"})

    assert response.json()["data"]["mergedCartItems"] == 1
    merged_items = mock_merge.call_args[0][2]
    assert merged_items[0].variant_id == "var-1"


def test_me_requires_login(client):
    assert client.get("/api/v1/auth/me").status_code == 401


@patch("factorybay.api.auth.UserRepository")
def test_me(mock_users, customer_client):
    mock_users.return_value.find_user_by_id.return_value = JANE

    response = customer_client.get("/api/v1/auth/me")

    assert response.json()["data"]["email"] == "jane@example.com"
