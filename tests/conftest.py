import os
import uuid

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.store import DriverStore


class StaticConnection:
    """Stands in for ConnectionManager with an already-open database."""

    def __init__(self, db):
        self.db = db

    async def get_connection(self):
        return self.db


@pytest.fixture
def mock_db():
    return AsyncMongoMockClient()[f"bus_kir_{uuid.uuid4().hex}"]


@pytest.fixture
def store(mock_db):
    return DriverStore(StaticConnection(mock_db))


@pytest.fixture
def driver_payload():
    return {
        "driverName": "Budi Santoso",
        "plateNumber": "B 7012 TGA",
        "kirExpiration": "2025-03-01T00:00:00.000Z",
        "busYear": 2018,
    }


@pytest.fixture
def test_client(store):
    from app.main import app
    from app.routes.driver import get_driver_store

    app.dependency_overrides[get_driver_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
