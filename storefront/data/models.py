"""
Data models for cart and wishlist persistence.

Every model serializes to the camelCase JSON shape shared by the remote
API and guest storage, and parses that shape back with validation.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from storefront.utils.error_handling import MalformedRemoteCollection


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_decimal(data: Dict[str, Any], key: str, required: bool = True) -> Optional[Decimal]:
    """Read a non-negative money amount from a payload."""
    value = data.get(key)
    if value is None:
        if required:
            raise MalformedRemoteCollection(f"Missing '{key}' in item {data.get('productId')!r}")
        return None
    if isinstance(value, bool):
        raise MalformedRemoteCollection(f"Invalid '{key}': {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise MalformedRemoteCollection(f"Invalid '{key}': {value!r}", cause=e)
    if not amount.is_finite() or amount < 0:
        raise MalformedRemoteCollection(f"Invalid '{key}': {value!r}")
    return amount


def _parse_product_id(data: Any) -> str:
    if not isinstance(data, dict):
        raise MalformedRemoteCollection(f"Expected an object, got {type(data).__name__}")
    product_id = data.get("productId")
    if not isinstance(product_id, str) or not product_id:
        raise MalformedRemoteCollection(f"Missing or invalid 'productId': {product_id!r}")
    return product_id


def _parse_images(data: Dict[str, Any]) -> List[str]:
    images = data.get("images") or []
    if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
        raise MalformedRemoteCollection(f"Invalid 'images' for {data.get('productId')!r}")
    return list(images)


@dataclass
class Product:
    """Catalog fields offered to the cart or wishlist when a shopper adds an item."""

    product_id: str
    name: str
    price: Decimal
    original_price: Optional[Decimal] = None
    images: List[str] = field(default_factory=list)
    in_stock: bool = True

    def __post_init__(self):
        self.price = Decimal(str(self.price))
        if self.original_price is not None:
            self.original_price = Decimal(str(self.original_price))
        if self.price < 0:
            raise ValueError("price must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """Create a product from a catalog payload."""
        return cls(
            product_id=_parse_product_id(data),
            name=str(data.get("name", "")),
            price=_parse_decimal(data, "price"),
            original_price=_parse_decimal(data, "originalPrice", required=False),
            images=_parse_images(data),
            in_stock=bool(data.get("inStock", True)),
        )


@dataclass
class CartLine:
    """One product in a cart."""

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    image_refs: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.unit_price = Decimal(str(self.unit_price))
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")
        if self.unit_price < 0:
            raise ValueError("unit_price must not be negative")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> 'CartLine':
        return cls(
            product_id=product.product_id,
            name=product.name,
            unit_price=product.price,
            quantity=quantity,
            image_refs=list(product.images),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the model to a dictionary."""
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": str(self.unit_price),
            "quantity": self.quantity,
            "images": list(self.image_refs),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        """Create a model from a dictionary, rejecting malformed shapes."""
        product_id = _parse_product_id(data)
        quantity = data.get("quantity", 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise MalformedRemoteCollection(f"Invalid 'quantity' for {product_id!r}: {quantity!r}")

        return cls(
            product_id=product_id,
            name=str(data.get("name", "")),
            unit_price=_parse_decimal(data, "price"),
            quantity=quantity,
            image_refs=_parse_images(data),
        )


@dataclass
class WishlistEntry:
    """A product snapshot saved to a wishlist."""

    product_id: str
    name: str
    price: Decimal
    original_price: Optional[Decimal] = None
    images: List[str] = field(default_factory=list)
    in_stock: bool = True
    added_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_product(cls, product: Product, added_at: Optional[datetime] = None) -> 'WishlistEntry':
        return cls(
            product_id=product.product_id,
            name=product.name,
            price=product.price,
            original_price=product.original_price,
            images=list(product.images),
            in_stock=product.in_stock,
            added_at=added_at or _utcnow(),
        )

    def to_product(self) -> Product:
        return Product(
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            original_price=self.original_price,
            images=list(self.images),
            in_stock=self.in_stock,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the model to a dictionary."""
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "originalPrice": str(self.original_price) if self.original_price is not None else None,
            "images": list(self.images),
            "inStock": self.in_stock,
            "addedAt": self.added_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WishlistEntry':
        """Create a model from a dictionary, rejecting malformed shapes."""
        product_id = _parse_product_id(data)

        added_at = data.get("addedAt")
        if isinstance(added_at, str):
            try:
                added_at = datetime.fromisoformat(added_at.replace("Z", "+00:00"))
            except ValueError as e:
                raise MalformedRemoteCollection(f"Invalid 'addedAt' for {product_id!r}", cause=e)
        elif added_at is None:
            added_at = _utcnow()
        elif not isinstance(added_at, datetime):
            raise MalformedRemoteCollection(f"Invalid 'addedAt' for {product_id!r}")

        return cls(
            product_id=product_id,
            name=str(data.get("name", "")),
            price=_parse_decimal(data, "price"),
            original_price=_parse_decimal(data, "originalPrice", required=False),
            images=_parse_images(data),
            in_stock=bool(data.get("inStock", True)),
            added_at=added_at,
        )
