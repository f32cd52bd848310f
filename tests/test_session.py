# tests/test_session.py
from decimal import Decimal

import pytest

from storefront.application import StorefrontSession
from storefront.config.settings import Settings
from storefront.data.local_storage import InMemoryStorage
from storefront.data.memory_repository import InMemoryCollectionRepository
from storefront.data.models import CartLine, Product, WishlistEntry
from storefront.domain.checkout import CheckoutForm
from storefront.domain.pricing import ShippingTier
from storefront.domain.session import OwnerContext, SessionSignal
from storefront.events.event_interface import EventEmitter, EventType
from storefront.services.api_client import StorefrontApiClient
from storefront.utils.error_handling import ItemUnavailable, RemoteUnavailable

KETTLE = Product(product_id="p1", name="Kettle", price=Decimal("1250"))


@pytest.fixture
def session():
    session = StorefrontSession(
        settings=Settings(),
        storage=InMemoryStorage(),
        client=StorefrontApiClient("http://shop.test"),
    )
    session.cart.remote = InMemoryCollectionRepository("cart", CartLine.from_dict)
    session.wishlist.remote = InMemoryCollectionRepository("wishlist", WishlistEntry.from_dict)
    return session


def test_owner_context():
    assert not OwnerContext.guest().is_authenticated
    assert OwnerContext.authenticated("a1").is_authenticated
    assert str(OwnerContext.authenticated("a1")) == "account:a1"
    with pytest.raises(ValueError):
        OwnerContext.authenticated("")


@pytest.mark.asyncio
async def test_signal_emits_transitions_once():
    emitter = EventEmitter()
    seen = []
    emitter.on_any(lambda event: seen.append(event.type))
    signal = SessionSignal(emitter)

    await signal.sign_in("a1")
    await signal.sign_in("a1")
    await signal.sign_out()
    await signal.sign_out()

    assert seen == [EventType.SESSION_SIGNED_IN, EventType.SESSION_SIGNED_OUT]


@pytest.mark.asyncio
async def test_switching_accounts_signs_out_first():
    emitter = EventEmitter()
    seen = []
    emitter.on_any(lambda event: seen.append((event.type, getattr(event, "account_id", None))))
    signal = SessionSignal(emitter)

    await signal.sign_in("a1")
    await signal.sign_in("a2")

    assert seen == [
        (EventType.SESSION_SIGNED_IN, "a1"),
        (EventType.SESSION_SIGNED_OUT, None),
        (EventType.SESSION_SIGNED_IN, "a2"),
    ]
    assert signal.owner == OwnerContext.authenticated("a2")


@pytest.mark.asyncio
async def test_sign_in_merges_guest_cart(session):
    await session.start()
    await session.cart.add_item(KETTLE, 2)

    await session.sign_in("a1")

    assert session.owner.account_id == "a1"
    assert [(l.product_id, l.quantity) for l in await session.cart.remote.fetch_all()] == [("p1", 2)]
    assert session.storage.get_item("guestCart") is None
    assert session.cart.owner == session.owner
    assert session.wishlist.owner == session.owner


@pytest.mark.asyncio
async def test_sign_out_returns_to_empty_guest_state(session):
    await session.start()
    await session.cart.add_item(KETTLE)
    await session.sign_in("a1")

    await session.sign_out()

    assert not session.owner.is_authenticated
    assert session.cart.items == []
    assert not session.cart.owner.is_authenticated


@pytest.mark.asyncio
async def test_retry_merge_after_remote_failure(session):
    await session.start()
    await session.cart.add_item(KETTLE)
    remote = session.cart.remote
    working_upsert = remote.upsert

    async def offline(item):
        raise RemoteUnavailable("offline")

    remote.upsert = offline
    await session.sign_in("a1")
    assert session.storage.get_item("guestCart") is not None

    remote.upsert = working_upsert
    result = await session.retry_merge()

    assert result.ok
    assert [l.product_id for l in session.cart.items] == ["p1"]
    assert session.storage.get_item("guestCart") is None


@pytest.mark.asyncio
async def test_retry_merge_requires_sign_in(session):
    await session.start()
    with pytest.raises(RuntimeError):
        await session.retry_merge()


@pytest.mark.asyncio
async def test_quote_and_draft_order(session):
    await session.start()
    await session.cart.add_item(KETTLE, 2)

    totals = session.quote_checkout("Dhaka", ShippingTier.EXPRESS)
    assert totals.total == Decimal("2830")

    form = CheckoutForm(email="a@b.c", first_name="A", last_name="B", address="Road 1",
                        city="Dhaka", zip_code="1207", phone="0170", shipping_tier="express")
    draft = session.draft_order(form)

    assert draft.totals == totals
    assert draft.user_id is None


@pytest.mark.asyncio
async def test_wishlist_item_moves_to_cart_and_stays_saved(session):
    await session.start()
    await session.wishlist.add_item(Product(product_id="p5", name="Mug", price=Decimal("300"), images=["mug.png"]))

    result = await session.add_wishlist_item_to_cart("p5")

    assert result.ok
    line = session.cart.get("p5")
    assert line.quantity == 1
    assert line.unit_price == Decimal("300")
    assert line.image_refs == ["mug.png"]
    assert session.wishlist.contains("p5")


@pytest.mark.asyncio
async def test_out_of_stock_wishlist_item_is_not_added_to_cart(session):
    await session.start()
    await session.wishlist.add_item(Product(product_id="p6", name="Chair", price=Decimal("2100"), in_stock=False))

    refused = await session.add_wishlist_item_to_cart("p6")
    missing = await session.add_wishlist_item_to_cart("nope")

    assert not refused.ok
    assert isinstance(refused.error, ItemUnavailable)
    assert not refused.retryable
    assert not missing.ok
    assert isinstance(missing.error, ItemUnavailable)
    assert session.cart.items == []
