"""
Shared fixtures for permission engine tests.
"""

from datetime import datetime, timezone

import pytest

from service_permissions.app.rules.models import Principal


@pytest.fixture
def admin_user():
    """Verified admin principal."""
    return Principal(
        id="admin-1",
        email="admin@ink37tattoos.com",
        role="admin",
        email_verified=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def regular_user():
    """Verified non-admin principal."""
    return Principal(
        id="user-1",
        email="user@example.com",
        role="user",
        email_verified=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def unverified_user():
    """Non-admin principal without a verified email."""
    return Principal(
        id="user-2",
        email="unverified@example.com",
        role="user",
        email_verified=None,
    )
