import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app


@pytest.fixture
def db():
    return mongomock.MongoClient()["marketplace_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def category(client):
    return client.post("/api/categories", json={"name": "Books"}).json()


@pytest.fixture
def user(client):
    return client.post("/api/users", json={"username": "alice", "email": "alice@example.com"}).json()


@pytest.fixture
def product(client, category):
    body = {"name": "Novel", "price": 10, "stock": 5, "categoryRef": category["id"]}
    return client.post("/api/products", json=body).json()
