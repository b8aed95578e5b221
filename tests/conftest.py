"""
Shared pytest fixtures.
"""
import os

# Keep the app module from binding to the deployment database on import.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from db import create_db_and_tables, get_engine
from main import app
from models import ItemRequest, Store, User


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite engine; feed assembly reads from worker threads."""
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'locify.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    create_db_and_tables(test_engine)
    try:
        yield test_engine
    finally:
        SQLModel.metadata.drop_all(test_engine)
        test_engine.dispose()


@pytest.fixture
def test_db(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_client(engine):
    """Factory for TestClients bound to the test engine; each keeps its own cookies."""
    app.dependency_overrides[get_engine] = lambda: engine
    clients = []

    def _make() -> TestClient:
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client) -> TestClient:
    """Anonymous client."""
    return make_client()


def _register(client: TestClient, email: str, name: str, role: str) -> int:
    resp = client.post(
        "/register",
        json={
            "email": email,
            "name": name,
            "password": "secret-pass",
            "is_buyer": role == "buyer",
            "is_vendor": role == "vendor",
        },
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


@pytest.fixture
def buyer_client(make_client) -> TestClient:
    client = make_client()
    client.user_id = _register(client, "buyer@example.com", "Bea Buyer", "buyer")
    return client


@pytest.fixture
def vendor_client(make_client) -> TestClient:
    client = make_client()
    client.user_id = _register(client, "vendor@example.com", "Val Vendor", "vendor")
    return client


@pytest.fixture
def buyer(test_db) -> User:
    user = User(email="b@example.com", name="B", password_hash="x", is_buyer=True)
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture
def vendor(test_db) -> User:
    user = User(email="v@example.com", name="V", password_hash="x", is_vendor=True)
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture
def open_request(test_db, buyer) -> ItemRequest:
    req = ItemRequest(user_id=buyer.id, description="Fresh organic tomatoes")
    test_db.add(req)
    test_db.commit()
    test_db.refresh(req)
    return req


@pytest.fixture
def vendor_store(test_db, vendor) -> Store:
    store = Store(vendor_id=vendor.id, store_name="Green Acres", address="12 Market St")
    test_db.add(store)
    test_db.commit()
    test_db.refresh(store)
    return store
