"""
Shared fixtures: every test gets its own SQLite-backed store with a small catalog.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from order_service.db import make_engine
from order_service.domain import Dataset, Product
from order_service.main import app, get_store
from order_service.store import DatasetStore, SqlStorageBackend

# Suppress noisy logs during tests for cleaner output
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("order_service").setLevel(logging.WARNING)


def make_catalog():
    return [
        Product(id=1, name="Widget", price=10, stock=5),
        Product(id=2, name="Gadget", price=25.5, stock=3),
        Product(id=3, name="Sold Out", price=7, stock=0),
    ]


@pytest.fixture
def backend(tmp_path):
    """
    A SQL backend on a throwaway SQLite file, pre-filled with the test catalog.
    """
    engine = make_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    sql_backend = SqlStorageBackend(engine)
    sql_backend.create_tables()
    sql_backend.save(Dataset(products=make_catalog()))
    yield sql_backend
    engine.dispose()


@pytest.fixture
def store(backend):
    dataset_store = DatasetStore(backend)
    dataset_store.load()
    return dataset_store


@pytest.fixture
def client(store):
    """
    Provides a TestClient wired to the per-test store.
    The client is not used as a context manager, so the startup handler
    (which builds a store from the environment) never runs.
    """
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_store, None)
