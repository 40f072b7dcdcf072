import json

import pytest

from database import COLLECTIONS, RecordStore, StoreError, create_document, find_index


@pytest.fixture
def store(tmp_path):
    s = RecordStore(tmp_path / "data")
    s.init()
    return s


def test_init_creates_empty_collections(store):
    for name in COLLECTIONS:
        assert store.load(name) == []


def test_init_keeps_existing_data(store):
    store.save("products", [{"id": "p1"}])
    store.init()
    assert store.load("products") == [{"id": "p1"}]


def test_save_rewrites_whole_file(store):
    store.save("orders", [{"id": "a"}, {"id": "b"}])
    store.save("orders", [{"id": "c"}])
    assert json.loads(store.path("orders").read_text()) == [{"id": "c"}]


def test_missing_collection_raises(tmp_path):
    with pytest.raises(StoreError):
        RecordStore(tmp_path / "empty").load("orders")


def test_malformed_collection_raises(store):
    store.path("orders").write_text("{oops", encoding="utf-8")
    with pytest.raises(StoreError):
        store.load("orders")
    store.path("orders").write_text('{"id": 1}', encoding="utf-8")
    with pytest.raises(StoreError):
        store.load("orders")


def test_racing_updates_last_write_wins(store):
    store.save("orders", [{"id": "o1", "status": "pending", "notes": ""}])

    first = store.load("orders")
    second = store.load("orders")
    first[0]["status"] = "shipped"
    first[0]["notes"] = "sent with courier"
    second[0]["status"] = "cancelled"

    store.save("orders", first)
    store.save("orders", second)

    # The later save replaces the earlier one outright; nothing is merged
    assert store.load("orders") == [{"id": "o1", "status": "cancelled", "notes": ""}]


def test_create_document_appends(client):
    doc = create_document("products", {"id": "p1", "name": "Grid"})
    assert doc == {"id": "p1", "name": "Grid"}
    create_document("products", {"id": "p2", "name": "Tongs"})
    assert [p["id"] for p in client.get("/api/products").json()] == ["p1", "p2"]


def test_find_index():
    docs = [{"id": "a"}, {"id": "b", "ref": "x"}]
    assert find_index(docs, "b") == 1
    assert find_index(docs, "x", key="ref") == 1
    assert find_index(docs, "zz") == -1


def test_unreadable_store_is_a_server_error(client, tmp_path):
    (tmp_path / "data" / "orders.json").unlink()
    r = client.get("/api/orders/anything/status")
    assert r.status_code == 500
    assert r.json() == {"detail": "Server error"}


def test_failed_save_leaves_no_temp_file(store):
    store.save("orders", [{"id": "o1"}])
    with pytest.raises(StoreError):
        store.save("orders", [{"id": "o2", "when": object()}])
    assert store.load("orders") == [{"id": "o1"}]
    assert [p.name for p in store.root.iterdir() if p.name.endswith(".tmp")] == []


def test_save_keeps_file_mode(store):
    store.path("orders").chmod(0o640)
    store.save("orders", [{"id": "o1"}])
    assert store.path("orders").stat().st_mode & 0o777 == 0o640


def test_save_new_collection_is_readable(tmp_path):
    s = RecordStore(tmp_path)
    s.save("orders", [])
    assert s.path("orders").stat().st_mode & 0o777 == 0o644
