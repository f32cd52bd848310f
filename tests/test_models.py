# tests/test_models.py
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storefront.data.models import CartLine, Product, WishlistEntry
from storefront.utils.error_handling import MalformedRemoteCollection


def test_cart_line_from_dict_parses_prices_as_decimal():
    line = CartLine.from_dict({
        "productId": "p1",
        "name": "Kettle",
        "price": 19.99,
        "quantity": 3,
        "images": ["https://img/1.png"],
    })

    assert line.unit_price == Decimal("19.99")
    assert line.line_total == Decimal("59.97")
    assert line.image_refs == ["https://img/1.png"]


def test_cart_line_to_dict_uses_api_shape():
    line = CartLine(product_id="p1", name="Kettle", unit_price=Decimal("10.50"), quantity=2)

    assert line.to_dict() == {
        "productId": "p1",
        "name": "Kettle",
        "price": "10.50",
        "quantity": 2,
        "images": [],
    }


@pytest.mark.parametrize("payload", [
    {"name": "no id", "price": 1},
    {"productId": "", "price": 1},
    {"productId": 42, "price": 1},
    {"productId": "p1"},
    {"productId": "p1", "price": "abc"},
    {"productId": "p1", "price": -5},
    {"productId": "p1", "price": "NaN"},
    {"productId": "p1", "price": True},
    {"productId": "p1", "price": 1, "quantity": 0},
    {"productId": "p1", "price": 1, "quantity": "2"},
    {"productId": "p1", "price": 1, "images": "one.png"},
    "not an object",
])
def test_cart_line_rejects_malformed_payloads(payload):
    with pytest.raises(MalformedRemoteCollection):
        CartLine.from_dict(payload)


def test_cart_line_requires_positive_quantity():
    with pytest.raises(ValueError):
        CartLine(product_id="p1", name="x", unit_price=Decimal("1"), quantity=0)


def test_wishlist_entry_snapshot_of_product():
    product = Product(product_id="p9", name="Lamp", price=Decimal("450"), original_price=Decimal("500"),
                      images=["a.png"], in_stock=False)
    added_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    entry = WishlistEntry.from_product(product, added_at=added_at)

    assert entry.price == Decimal("450")
    assert entry.original_price == Decimal("500")
    assert entry.in_stock is False
    assert entry.added_at == added_at


def test_wishlist_entry_parses_javascript_timestamps():
    entry = WishlistEntry.from_dict({
        "productId": "p1",
        "name": "Lamp",
        "price": "450",
        "addedAt": "2024-05-01T12:00:00.000Z",
    })

    assert entry.added_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert entry.original_price is None
    assert entry.in_stock is True


def test_wishlist_entry_rejects_bad_timestamp():
    with pytest.raises(MalformedRemoteCollection):
        WishlistEntry.from_dict({"productId": "p1", "price": 1, "addedAt": "yesterday"})


def test_product_from_dict():
    product = Product.from_dict({"productId": "p1", "name": "Mug", "price": "120", "inStock": False})

    assert product.price == Decimal("120")
    assert product.in_stock is False
