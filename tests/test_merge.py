# tests/test_merge.py
import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from storefront.data.local_repository import LocalCollectionRepository
from storefront.data.local_storage import InMemoryStorage
from storefront.data.memory_repository import InMemoryCollectionRepository
from storefront.data.models import CartLine, WishlistEntry
from storefront.domain.backends import ConfirmedBackend
from storefront.domain.session import OwnerContext
from storefront.domain.store import CartStore, WishlistStore
from storefront.utils.error_handling import RemoteUnavailable

ACCOUNT = OwnerContext.authenticated("acct-42")


def line(product_id, quantity=1):
    return CartLine(product_id=product_id, name=product_id.upper(), unit_price=Decimal("100"), quantity=quantity)


def entry(product_id, name=None):
    return WishlistEntry(product_id=product_id, name=name or product_id.upper(), price=Decimal("10"))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def cart_local(storage):
    return LocalCollectionRepository("cart", storage, "guestCart", CartLine.from_dict)


@pytest.mark.asyncio
async def test_merge_adds_missing_and_keeps_remote_copy(storage, cart_local):
    """local={A,B}, remote={B,C} -> remote={A,B,C} with remote B kept"""
    await cart_local.save_all([line("a", 2), line("b", 9)])
    remote = InMemoryCollectionRepository("cart", CartLine.from_dict, items=[line("b", 1), line("c", 3)])
    cart = CartStore(local=cart_local, remote=remote)
    await cart.load()

    result = await cart.merge_on_sign_in(ACCOUNT)

    assert result.ok
    remote_items = {item.product_id: item.quantity for item in await remote.fetch_all()}
    assert remote_items == {"a": 2, "b": 1, "c": 3}
    assert {item.product_id for item in cart.items} == {"a", "b", "c"}
    assert cart.get("b").quantity == 1
    assert storage.get_item("guestCart") is None
    assert cart.owner == ACCOUNT
    assert isinstance(cart.backend, ConfirmedBackend)


@pytest.mark.asyncio
async def test_merge_wishlist_remote_wins(storage):
    local = LocalCollectionRepository("wishlist", storage, "guestWishlist", WishlistEntry.from_dict)
    await local.save_all([entry("a"), entry("b", "local B")])
    remote = InMemoryCollectionRepository("wishlist", WishlistEntry.from_dict, items=[entry("b", "remote B"), entry("c")])
    wishlist = WishlistStore(local=local, remote=remote)
    await wishlist.load()

    await wishlist.merge_on_sign_in(ACCOUNT)

    assert {e.product_id for e in await remote.fetch_all()} == {"a", "b", "c"}
    assert wishlist.get("b").name == "remote B"
    assert await local.fetch_all() == []


@pytest.mark.asyncio
async def test_merge_runs_once_per_sign_in(storage, cart_local):
    await cart_local.save_all([line("a")])
    remote = InMemoryCollectionRepository("cart", CartLine.from_dict)
    cart = CartStore(local=cart_local, remote=remote)
    await cart.load()

    await cart.merge_on_sign_in(ACCOUNT)
    remote.upsert = AsyncMock()
    again = await cart.merge_on_sign_in(ACCOUNT)

    assert again.ok
    remote.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_failed_merge_keeps_guest_storage_for_retry(storage, cart_local):
    await cart_local.save_all([line("a"), line("b")])
    remote = InMemoryCollectionRepository("cart", CartLine.from_dict)
    original_upsert = remote.upsert
    remote.upsert = AsyncMock(side_effect=RemoteUnavailable("offline"))
    cart = CartStore(local=cart_local, remote=remote)
    await cart.load()

    failed = await cart.merge_on_sign_in(ACCOUNT)

    assert not failed.ok and failed.retryable
    assert cart.is_ready
    assert [item.product_id for item in await cart_local.fetch_all()] == ["a", "b"]

    remote.upsert = original_upsert
    retried = await cart.merge_on_sign_in(ACCOUNT)

    assert retried.ok
    assert {item.product_id for item in cart.items} == {"a", "b"}
    assert storage.get_item("guestCart") is None


@pytest.mark.asyncio
async def test_merge_requires_authenticated_owner(cart_local):
    cart = CartStore(local=cart_local, remote=InMemoryCollectionRepository("cart", CartLine.from_dict))
    await cart.load()

    with pytest.raises(ValueError):
        await cart.merge_on_sign_in(OwnerContext.guest())


@pytest.mark.asyncio
async def test_switch_back_to_guest_reads_local_storage(storage, cart_local):
    remote = InMemoryCollectionRepository("cart", CartLine.from_dict, items=[line("r")])
    cart = CartStore(local=cart_local, remote=remote, owner=ACCOUNT)
    await cart.load()
    assert [item.product_id for item in cart.items] == ["r"]

    await cart.switch_owner(OwnerContext.guest())

    assert cart.items == []
    assert not cart.owner.is_authenticated


@pytest.mark.asyncio
async def test_sign_out_during_merge_keeps_guest_storage(storage, cart_local):
    await cart_local.save_all([line("a"), line("b")])
    remote = InMemoryCollectionRepository("cart", CartLine.from_dict)
    cart = CartStore(local=cart_local, remote=remote)
    await cart.load()

    gate = asyncio.Event()
    original_upsert = remote.upsert

    async def slow_upsert(item):
        await gate.wait()
        await original_upsert(item)

    remote.upsert = slow_upsert

    merging = asyncio.create_task(cart.merge_on_sign_in(ACCOUNT))
    await asyncio.sleep(0)
    await cart.switch_owner(OwnerContext.guest())

    gate.set()
    result = await merging

    assert not result.ok
    assert not cart.owner.is_authenticated
    assert cart.is_ready
    assert [item.product_id for item in cart.items] == ["a", "b"]
    assert [item.product_id for item in await cart_local.fetch_all()] == ["a", "b"]
