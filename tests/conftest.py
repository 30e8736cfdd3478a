"""Shared pytest fixtures for storefront tests."""

import pytest
from fastapi.testclient import TestClient

from database import MemoryBackend, Store
from schemas import Identity, Product, Role
from state import Storefront


def make_product(pid, price, **kw):
    data = {
        "id": pid,
        "title": f"Product {pid}",
        "category": "Electronics",
        "price": price,
        "rating": 4.0,
        "reviews": 10,
        "prime": True,
        "stock": 5,
        "image": f"https://img.example.com/{pid}.jpg",
    }
    data.update(kw)
    return Product(**data)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return Store(backend)


@pytest.fixture
def customer():
    return Identity(id="u1", name="Casey", email="casey@example.com", role=Role.customer)


@pytest.fixture
def admin():
    return Identity(id="u2", name="Avery", email="avery@example.com", role=Role.admin)


@pytest.fixture
def storefront(store):
    """Storefront seeded with the demo catalog."""
    return Storefront.open(store)


@pytest.fixture
def client(storefront):
    from main import app, get_storefront

    app.dependency_overrides[get_storefront] = lambda: storefront
    yield TestClient(app)
    app.dependency_overrides.clear()
