"""
Base repository interface for cart and wishlist collections.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, TypeVar

from storefront.utils.error_handling import MalformedRemoteCollection

T = TypeVar('T')


class CollectionRepository(Generic[T], ABC):
    """Base class for all collection repositories.

    A collection is an ordered list of items keyed by ``product_id``
    (cart lines or wishlist entries) belonging to one owner. This abstract
    class defines the operations both the guest and the remote backing
    stores provide.

    Generic type T represents the item model being managed.
    """

    def __init__(self, name: str, parse_item: Callable[[Dict[str, Any]], T]):
        """Initialize the repository.

        Args:
            name: Collection name ("cart" or "wishlist")
            parse_item: Validating parser turning a JSON object into an item
        """
        self.name = name
        self.parse_item = parse_item

    @abstractmethod
    async def fetch_all(self) -> List[T]:
        """Retrieve the whole collection in stored order.

        Returns:
            List[T]: Items of the collection

        Raises:
            MalformedRemoteCollection: If the stored shape is invalid
        """
        pass

    @abstractmethod
    async def upsert(self, item: T) -> None:
        """Insert an item, or replace the item with the same product id.

        Args:
            item: Item to store
        """
        pass

    @abstractmethod
    async def delete(self, product_id: str) -> None:
        """Delete the item with the given product id, if present.

        Args:
            product_id: Product identifier
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every item of the collection."""
        pass

    def parse_collection(self, raw_items: Any) -> List[T]:
        """Validate a raw JSON list into items.

        Raises:
            MalformedRemoteCollection: If ``raw_items`` is not a list of valid items
        """
        if not isinstance(raw_items, list):
            raise MalformedRemoteCollection(
                f"Expected a list for {self.name}, got {type(raw_items).__name__}"
            )
        return [self.parse_item(raw) for raw in raw_items]
