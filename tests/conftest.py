"""
Global test configuration and fixtures for dynamostore

DynamoDB is replaced by an in-memory fake client so the suite needs no
network access or local DynamoDB instance.
"""

import pytest
from fastapi.testclient import TestClient

from dynamostore.core.config import Settings
from dynamostore.core.store import DynamoStore
from dynamostore.main import create_app
from tests.utils.fakes import FakeDynamoDBClient

TEST_TABLE = "t1"
TEST_SECRET = b"sessionSecret"
TEST_COOKIE = "mysession"


# ============================================================================
# Backing Store Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def dynamodb():
    """Empty fake DynamoDB account (no tables yet)"""
    return FakeDynamoDBClient()


@pytest.fixture(scope="function")
def store(dynamodb):
    """Store bootstrapped against the fake client"""
    return DynamoStore(
        {"table": TEST_TABLE, "endpoint": "http://localhost:8000", "ttl_enabled": True},
        TEST_SECRET,
        client=dynamodb,
    )


@pytest.fixture(scope="function")
def encrypted_store(dynamodb):
    """Store whose codec signs and encrypts"""
    return DynamoStore(
        {"table": TEST_TABLE},
        TEST_SECRET,
        b"encryption-block-key",
        client=dynamodb,
    )


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def test_settings():
    """Settings isolated from the host environment"""
    return Settings(
        _env_file=None,
        table=TEST_TABLE,
        secret_key="test-secret-key-for-testing-only",
        cookie_name=TEST_COOKIE,
        dev_mode=True,
    )


@pytest.fixture(scope="function")
def app_store(test_settings, dynamodb):
    return DynamoStore.from_settings(test_settings, client=dynamodb)


@pytest.fixture(scope="function")
def client(test_settings, app_store):
    """FastAPI test client sharing one store"""
    app = create_app(store=app_store, settings=test_settings)
    with TestClient(app) as test_client:
        yield test_client
