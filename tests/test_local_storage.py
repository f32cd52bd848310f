# tests/test_local_storage.py
import json
import logging
from decimal import Decimal

import pytest

from storefront.data.local_repository import LocalCollectionRepository
from storefront.data.local_storage import InMemoryStorage, JsonFileStorage
from storefront.data.models import CartLine
from storefront.utils.error_handling import LocalStorageUnavailable, MalformedRemoteCollection


def _line(product_id, quantity=1, price="10"):
    return CartLine(product_id=product_id, name=f"Product {product_id}", unit_price=Decimal(price), quantity=quantity)


def test_in_memory_storage_basic_operations():
    storage = InMemoryStorage()

    assert storage.get_item("k") is None
    storage.set_item("k", "v")
    assert storage.get_item("k") == "v"
    storage.remove_item("k")
    assert storage.get_item("k") is None


def test_in_memory_storage_quota_and_disabled():
    with pytest.raises(LocalStorageUnavailable):
        InMemoryStorage(quota=3).set_item("k", "toolong")

    storage = InMemoryStorage(disabled=True)
    with pytest.raises(LocalStorageUnavailable):
        storage.get_item("k")


def test_json_file_storage_persists_between_instances(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    JsonFileStorage(path).set_item("guestCart", "[]")

    assert JsonFileStorage(path).get_item("guestCart") == "[]"
    assert json.loads(path.read_text(encoding="utf-8")) == {"guestCart": "[]"}


def test_json_file_storage_reports_corrupt_file(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(LocalStorageUnavailable):
        JsonFileStorage(path).get_item("guestCart")


@pytest.mark.asyncio
async def test_round_trip_preserves_order(tmp_path):
    """Saving a guest collection and reading it back yields the same ordered list"""
    repo = LocalCollectionRepository("cart", JsonFileStorage(tmp_path / "s.json"), "guestCart", CartLine.from_dict)
    lines = [_line("c", 2, "5.25"), _line("a"), _line("b", 7, "0.99")]

    await repo.save_all(lines)
    reloaded = LocalCollectionRepository("cart", JsonFileStorage(tmp_path / "s.json"), "guestCart", CartLine.from_dict)

    assert await reloaded.fetch_all() == lines


@pytest.mark.asyncio
async def test_upsert_replaces_in_place_and_delete():
    repo = LocalCollectionRepository("cart", InMemoryStorage(), "guestCart", CartLine.from_dict)
    await repo.save_all([_line("a"), _line("b")])

    await repo.upsert(_line("a", 5))
    await repo.upsert(_line("c"))
    await repo.delete("b")

    assert [(l.product_id, l.quantity) for l in await repo.fetch_all()] == [("a", 5), ("c", 1)]


@pytest.mark.asyncio
async def test_malformed_stored_value():
    storage = InMemoryStorage()
    storage.set_item("guestCart", "{broken")
    repo = LocalCollectionRepository("cart", storage, "guestCart", CartLine.from_dict)

    with pytest.raises(MalformedRemoteCollection):
        await repo.fetch_all()

    storage.set_item("guestCart", json.dumps({"items": []}))
    with pytest.raises(MalformedRemoteCollection):
        await repo.fetch_all()


@pytest.mark.asyncio
async def test_clear_removes_key():
    storage = InMemoryStorage()
    repo = LocalCollectionRepository("cart", storage, "guestCart", CartLine.from_dict)
    await repo.save_all([_line("a")])

    await repo.clear()

    assert storage.get_item("guestCart") is None
    assert await repo.fetch_all() == []


def test_file_storage_logs_through_package_logger(tmp_path, caplog):
    with caplog.at_level(logging.DEBUG, logger="storefront.data.local_storage"):
        JsonFileStorage(tmp_path / "store.json").set_item("guestCart", "[]")

    assert any(
        record.name == "storefront.data.local_storage" and "Wrote 1 key" in record.getMessage()
        for record in caplog.records
    )
