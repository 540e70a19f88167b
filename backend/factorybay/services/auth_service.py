"""
Auth Service - signup and login

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Tuple

from neo4j import Session

from factorybay.core.auth import (
    create_access_token,
    hash_password,
    is_valid_email,
    validate_password,
    verify_password,
)
from factorybay.core.exceptions import AuthenticationError, ConflictError, ValidationError
from factorybay.domain.user import User, UserCreate
from factorybay.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Account creation and credential checks. Both return (user, token)."""

    def __init__(self, session: Session):
        self.users = UserRepository(session)

    def signup(self, data: UserCreate) -> Tuple[User, str]:
        """
        Register a customer account

        Raises:
            ValidationError: Bad email format or weak password
            ConflictError: Email already registered
        """
        email = data.email.strip().lower()
        if not is_valid_email(email):
            raise ValidationError("Invalid email address")

        password_error = validate_password(data.password)
        if password_error:
            raise ValidationError(password_error)

        if self.users.email_exists(email):
            raise ConflictError("An account with this email already exists")

        user = self.users.create_user(
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
        )
        logger.info(f"New account {user.id}")
        return user, create_access_token(user.id, user.email, user.role)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials

        Unknown email and wrong password give the same error.
        """
        user = self.users.find_user_by_email(email.strip())
        if user is None or not user.password_hash or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        return user, create_access_token(user.id, user.email, user.role)
