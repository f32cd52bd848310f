"""
Guest collection repository backed by key-value storage.
"""
import json
from typing import Any, Callable, Dict, Generic, List, TypeVar

from storefront.config.logging_config import get_logger
from storefront.data.base_repository import CollectionRepository
from storefront.data.local_storage import KeyValueStorage
from storefront.utils.error_handling import MalformedRemoteCollection

T = TypeVar('T')
logger = get_logger(__name__)


class LocalCollectionRepository(CollectionRepository[T], Generic[T]):
    """Stores a whole collection as one JSON array under a fixed key.

    Every write serializes the full collection, so the stored order is the
    in-memory order.
    """

    def __init__(
        self,
        name: str,
        storage: KeyValueStorage,
        key: str,
        parse_item: Callable[[Dict[str, Any]], T],
    ):
        super().__init__(name, parse_item)
        self.storage = storage
        self.key = key

    async def fetch_all(self) -> List[T]:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedRemoteCollection(f"Stored {self.name} under '{self.key}' is not JSON", cause=e)
        return self.parse_collection(data)

    async def save_all(self, items: List[T]) -> None:
        """Replace the stored collection with ``items``."""
        self.storage.set_item(self.key, json.dumps([item.to_dict() for item in items], ensure_ascii=False))
        logger.debug(f"Saved {len(items)} {self.name} item(s) to '{self.key}'")

    async def upsert(self, item: T) -> None:
        items = await self.fetch_all()
        for index, existing in enumerate(items):
            if existing.product_id == item.product_id:
                items[index] = item
                break
        else:
            items.append(item)
        await self.save_all(items)

    async def delete(self, product_id: str) -> None:
        items = await self.fetch_all()
        await self.save_all([item for item in items if item.product_id != product_id])

    async def clear(self) -> None:
        self.storage.remove_item(self.key)
