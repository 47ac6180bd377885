"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock, patch
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src.models.actor import Actor, Role  # noqa: E402
from src.models.listing import Listing  # noqa: E402
from src.utils.config import MarketplaceConfig  # noqa: E402
from tests.utils.factories import create_listing_data  # noqa: E402
from tests.utils.helpers import create_query_chain, create_supabase_client  # noqa: E402


@pytest.fixture
def mock_query():
    """PostgREST query chain returning no rows."""
    return create_query_chain()


@pytest.fixture
def mock_supabase_client(mock_query):
    """Mock Supabase client for testing."""
    return create_supabase_client(mock_query)


@pytest.fixture
def patch_supabase(mock_supabase_client):
    """Route SupabaseClient in the helpers module to the mock client."""
    with patch("src.services.supabase_client.get_supabase_client", return_value=mock_supabase_client):
        yield mock_supabase_client


@pytest.fixture
def admin_actor():
    return Actor(user_id="admin-1", role=Role.ADMIN, email="admin@example.com")


@pytest.fixture
def broker_actor():
    return Actor(user_id="broker-1", role=Role.USER, email="broker@example.com")


@pytest.fixture
def other_broker_actor():
    return Actor(user_id="broker-2", role=Role.USER)


@pytest.fixture
def sample_listing_row():
    """Approved listing row owned by broker-1."""
    return create_listing_data(
        id=42,
        title="Pine Hollow Campground",
        description="Family campground with lake access and shaded tent sites.",
        city="Bend",
        state="OR",
        price=1_250_000,
        num_sites=85,
        status="approved",
        user_id="broker-1",
        created_at="2024-03-01T00:00:00+00:00",
        updated_at="2024-03-01T00:00:00+00:00",
    )


@pytest.fixture
def pending_listing_row(sample_listing_row):
    return {**sample_listing_row, "status": "pending"}


@pytest.fixture
def pending_listing(pending_listing_row):
    return Listing.model_validate(pending_listing_row)


@pytest.fixture
def marketplace_config():
    """Restore MarketplaceConfig class attributes changed by a test."""
    names = [name for name in vars(MarketplaceConfig) if name.isupper()]
    saved = {name: getattr(MarketplaceConfig, name) for name in names}
    yield MarketplaceConfig
    for name, value in saved.items():
        setattr(MarketplaceConfig, name, value)


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture
def mock_vercel_request():
    """Mock Vercel serverless function request."""
    return {
        "method": "GET",
        "path": "/api/listings/search",
        "headers": {"content-type": "application/json"},
        "body": "",
        "query": {},
    }


@pytest.fixture
def mock_auth_user():
    user = MagicMock()
    user.id = "broker-1"
    user.email = "broker@example.com"
    return user


@pytest.fixture(scope="function")
def reset_environment(monkeypatch):
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
