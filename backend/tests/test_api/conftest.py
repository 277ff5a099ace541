"""
API test fixtures

Routers are exercised through TestClient with services and repositories
replaced via app.dependency_overrides. Signing in overrides the token
dependencies, so role checks still run for real.
"""
import pytest
from fastapi.testclient import TestClient

from sourdough.core.auth import get_current_user, get_current_user_optional
from sourdough.main import app as sourdough_app


@pytest.fixture
def app():
    yield sourdough_app
    sourdough_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def override(app):
    """
    Swap a provider for a fixed object

    Usage:
        override(get_order_repository, mock_repo)
    """
    def _override(provider, value):
        app.dependency_overrides[provider] = lambda: value
        return value

    return _override


@pytest.fixture
def login(override):
    """Sign in as a TokenUser for both required and optional auth"""
    def _login(user):
        override(get_current_user, user)
        override(get_current_user_optional, user)
        return user

    return _login
