"""
Unit tests for AuthService

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import MagicMock

import pytest

from factorybay.core.auth import hash_password, verify_token
from factorybay.core.exceptions import AuthenticationError, ConflictError, ValidationError
from factorybay.domain.user import User, UserCreate
from factorybay.services.auth_service import AuthService


@pytest.fixture
def service(mock_session):
    svc = AuthService(mock_session)
    svc.users = MagicMock()
    return svc


class TestSignup:

    def test_invalid_email(self, service):
        with pytest.raises(ValidationError, match="Invalid email address"):
            service.signup(UserCreate(email="not-an-email", password="Passw0rd!"))

    def test_weak_password(self, service):
        with pytest.raises(ValidationError, match="uppercase"):
            service.signup(UserCreate(email="jane@example.com", password="password1"))

    def test_existing_email(self, service):
        service.users.email_exists.return_value = True

        with pytest.raises(ConflictError):
            service.signup(UserCreate(email="jane@example.com", password="Passw0rd!"))

        service.users.create_user.assert_not_called()

    def test_signup_returns_user_and_token(self, service):
        service.users.email_exists.return_value = False
        service.users.create_user.return_value = User(id="user-1", email="jane@example.com")

        user, token = service.signup(UserCreate(email=" Jane@Example.com ", password="Passw0rd!"))

        kwargs = service.users.create_user.call_args.kwargs
        assert kwargs["email"] == "jane@example.com"
        assert kwargs["password_hash"] != "Passw0rd!"
        assert verify_token(token).id == "user-1"


class TestLogin:

    def test_unknown_email(self, service):
        service.users.find_user_by_email.return_value = None

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            service.login("ghost@example.com", "Passw0rd!")

    def test_wrong_password(self, service):
        service.users.find_user_by_email.return_value = User(
            id="user-1", email="jane@example.com", password_hash=hash_password("Passw0rd!")
        )

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            service.login("jane@example.com", "Wrong0ne!")

    def test_valid_credentials(self, service):
        service.users.find_user_by_email.return_value = User(
            id="user-1", email="jane@example.com", role="ADMIN", password_hash=hash_password("Passw0rd!")
        )

        user, token = service.login("jane@example.com", "Passw0rd!")

        assert user.id == "user-1"
        assert verify_token(token).role == "ADMIN"
