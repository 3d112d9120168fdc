"""
Tests for building the store from the environment at startup.
"""

import json

import pytest

from order_service import main
from order_service.orders import OrderLifecycle
from order_service.store import JsonStorageBackend, SqlStorageBackend

SEED = {
    "products": [
        {"id": 1, "name": "Widget", "price": 10, "stock": 5},
        {"id": 2, "name": "Gadget", "price": 4.5, "stock": 8},
    ],
    "orders": [],
}


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(SEED))
    return str(path)


@pytest.fixture
def sql_settings(monkeypatch, tmp_path, seed_file):
    monkeypatch.setattr(main, "STORAGE_BACKEND", "sql")
    monkeypatch.setattr(main, "DATABASE_URL", f"sqlite:///{tmp_path / 'startup.db'}")
    monkeypatch.setattr(main, "SEED_FILE", seed_file)


def test_sql_store_is_seeded_when_empty(sql_settings):
    store = main.build_store()
    assert isinstance(store.backend, SqlStorageBackend)
    assert [p.name for p in store.dataset.products] == ["Widget", "Gadget"]
    store.backend.engine.dispose()


def test_sql_store_is_seeded_only_once(sql_settings):
    store = main.build_store()
    OrderLifecycle(store).create_order(1, 2)
    store.backend.engine.dispose()

    # A second start must keep the data written since seeding.
    restarted = main.build_store()
    assert restarted.dataset.find_product(1).stock == 3
    assert len(restarted.dataset.orders) == 1
    restarted.backend.engine.dispose()


def test_sql_store_without_seed_starts_empty(sql_settings, monkeypatch):
    monkeypatch.setattr(main, "SEED_FILE", None)
    store = main.build_store()
    assert store.dataset.products == []
    assert store.dataset.orders == []
    store.backend.engine.dispose()


def test_json_backend_selected(monkeypatch, tmp_path, seed_file):
    monkeypatch.setattr(main, "STORAGE_BACKEND", "json")
    monkeypatch.setattr(main, "DATA_FILE", seed_file)

    store = main.build_store()
    assert isinstance(store.backend, JsonStorageBackend)
    assert store.dataset.find_product(2).price == 4.5
    assert store.dataset.next_order_id == 1
