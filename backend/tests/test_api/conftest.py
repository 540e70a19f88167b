"""
Fixtures for API tests

The Neo4j session and the auth dependencies are overridden; repositories
are patched per test where the routers import them.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from factorybay.core.auth import TokenUser, get_current_user, get_current_user_optional, require_admin
from factorybay.core.database import session_dep
from factorybay.main import app

ADMIN = TokenUser(id="admin-1", email="admin@factorybay.test", role="ADMIN")
CUSTOMER = TokenUser(id="user-1", email="jane@example.com", role="CUSTOMER")


@pytest.fixture
def api_session():
    return MagicMock()


@pytest.fixture
def client(api_session):
    """Anonymous client; admin routes answer 401"""
    app.dependency_overrides[session_dep] = lambda: api_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def customer_client(client):
    app.dependency_overrides[get_current_user] = lambda: CUSTOMER
    app.dependency_overrides[get_current_user_optional] = lambda: CUSTOMER
    return client


@pytest.fixture
def admin_client(client):
    app.dependency_overrides[get_current_user] = lambda: ADMIN
    app.dependency_overrides[get_current_user_optional] = lambda: ADMIN
    app.dependency_overrides[require_admin] = lambda: ADMIN
    return client
