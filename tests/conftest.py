# Test configuration
import os
from datetime import datetime, timezone

# Set test environment variables BEFORE importing package modules
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only-32chars"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["JWT_ISSUER"] = "finance-service-tests"
os.environ["JWT_AUDIENCE"] = "finance-service-clients"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["PASSWORD_KDF_ROUNDS"] = "2"  # Lower rounds for faster tests
os.environ["MONGODB_DATABASE"] = "finanzas_test"
os.environ["MONGODB_CREATE_INDEXES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fakes import FakeClient, FakeCollection  # noqa: E402

from finance_service.config import Settings  # noqa: E402
from finance_service.database import MongoContext  # noqa: E402
from finance_service.domain.entities import Category, Transaction, User  # noqa: E402
from finance_service.repositories.mongo_repository import MongoRepository  # noqa: E402
from finance_service.security import CredentialManager  # noqa: E402

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    """The instant the fixed clock reports."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def test_settings():
    """Settings built from the test environment."""
    return Settings()


@pytest.fixture
def credentials(test_settings):
    """Credential manager with test signing key and cheap KDF rounds."""
    return CredentialManager(test_settings)


@pytest.fixture
def category_collection():
    return FakeCollection("categories", unique_keys=[("owner_id", "name")])


@pytest.fixture
def transaction_collection():
    return FakeCollection("transactions")


@pytest.fixture
def user_collection():
    return FakeCollection("users", unique_keys=[("username",)])


@pytest.fixture
def category_repository(category_collection):
    return MongoRepository(category_collection, Category)


@pytest.fixture
def transaction_repository(transaction_collection):
    return MongoRepository(transaction_collection, Transaction)


@pytest.fixture
def user_repository(user_collection):
    return MongoRepository(user_collection, User)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def mongo_context(test_settings, fake_client):
    """Mongo context backed by in-memory collections."""
    return MongoContext(test_settings, client=fake_client)
