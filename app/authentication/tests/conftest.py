"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/auth/users/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic active user with password TestPass123!."""
    return UserFactory(email="alice@example.com", username="alice")


@pytest.fixture
def other_user(db):
    """Create a second user to appear in contact lists."""
    return UserFactory(email="bob@example.com", username="bob")


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory():
    """
    Build a client that sends a bearer token for the given user.

    Usage:
        client = authenticated_client_factory(other_user)
    """

    def _make(user):
        client = APIClient()
        token = AccessToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return client

    return _make


@pytest.fixture
def authenticated_client(authenticated_client_factory, user):
    """Client authenticated as ``user``."""
    return authenticated_client_factory(user)
