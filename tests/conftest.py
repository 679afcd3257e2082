"""Test configuration and fixtures."""
import os

import pytest
from fastapi.testclient import TestClient
from motor.motor_asyncio import AsyncIOMotorClient

from taskflow_admin.api.app import create_app
from taskflow_admin.services.mongodb.tenant_namespace import resolve_physical_name
from tests.fakes import FakeDatabase, FakeMongoClient

TENANT_ID = "org1"
OTHER_TENANT_ID = "org2"


@pytest.fixture
def fake_db():
    """An empty in-memory database."""
    return FakeDatabase()


@pytest.fixture
def tasks():
    """Physical name of org1's "tasks" collection."""
    return resolve_physical_name(TENANT_ID, "tasks")


@pytest.fixture
def mongodb_client(fake_db):
    return FakeMongoClient(fake_db)


@pytest.fixture
def app(mongodb_client):
    """Create a test app backed by the in-memory database."""
    return create_app(mongodb_client=mongodb_client)


@pytest.fixture
def client(app):
    """Create a test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def tenant_headers():
    return {"X-Org-Id": TENANT_ID}


@pytest.fixture
async def test_mongodb_client():
    """Create a test MongoDB database on a live server (MONGODB_TEST_URI)."""
    uri = os.getenv("MONGODB_TEST_URI")
    if not uri:
        pytest.skip("MONGODB_TEST_URI not set")

    client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=2000)
    test_db = client["test_taskflow_admin"]

    # Clean database before tests
    for collection in await test_db.list_collection_names():
        await test_db.drop_collection(collection)

    yield test_db

    # Clean up after tests
    for collection in await test_db.list_collection_names():
        await test_db.drop_collection(collection)
    client.close()
