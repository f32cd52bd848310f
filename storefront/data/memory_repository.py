"""
In-memory collection repository implementation for testing.
"""
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from storefront.config.logging_config import get_logger
from storefront.data.base_repository import CollectionRepository

T = TypeVar('T')
logger = get_logger(__name__)


class InMemoryCollectionRepository(CollectionRepository[T], Generic[T]):
    """In-memory collection repository.

    This repository keeps items in insertion order in memory, primarily for
    testing and offline development in place of the remote API.
    """

    def __init__(
        self,
        name: str,
        parse_item: Callable[[Dict[str, Any]], T],
        items: Optional[List[T]] = None,
    ):
        """Initialize the repository.

        Args:
            name: Collection name
            parse_item: Validating item parser
            items: Optional initial items
        """
        super().__init__(name, parse_item)
        self._store: Dict[str, T] = {}
        for item in items or []:
            self._store[item.product_id] = item

    async def fetch_all(self) -> List[T]:
        return list(self._store.values())

    async def upsert(self, item: T) -> None:
        self._store[item.product_id] = item

    async def delete(self, product_id: str) -> None:
        if product_id not in self._store:
            logger.warning(f"Item with product ID {product_id} not found in {self.name}")
            return
        del self._store[product_id]

    async def clear(self) -> None:
        self._store.clear()
