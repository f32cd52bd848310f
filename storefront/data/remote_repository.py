"""
Account collection repository backed by the remote storefront API.
"""
from typing import Any, Callable, Dict, Generic, List, TypeVar

from storefront.config.logging_config import get_logger
from storefront.data.base_repository import CollectionRepository
from storefront.services.api_client import StorefrontApiClient
from storefront.utils.error_handling import RemoteUnavailable

T = TypeVar('T')
logger = get_logger(__name__)

# Statuses the API answers with when an item is already in the collection
DUPLICATE_STATUSES = (400, 409)


class RemoteCollectionRepository(CollectionRepository[T], Generic[T]):
    """Reads and writes one collection of the signed-in account.

    Responses are parsed into typed items before they reach a store, so an
    unexpected payload shape fails here as MalformedRemoteCollection.
    """

    def __init__(
        self,
        name: str,
        client: StorefrontApiClient,
        parse_item: Callable[[Dict[str, Any]], T],
        duplicate_is_success: bool = False,
    ):
        """
        Args:
            name: Collection name ("cart" or "wishlist")
            client: API client used for every call
            parse_item: Validating item parser
            duplicate_is_success: Treat an "already present" rejection of an
                add as success (wishlist adds are idempotent)
        """
        super().__init__(name, parse_item)
        self.client = client
        self.duplicate_is_success = duplicate_is_success

    async def fetch_all(self) -> List[T]:
        return self.parse_collection(await self.client.get_collection(self.name))

    async def upsert(self, item: T) -> None:
        try:
            await self.client.add_item(self.name, item.to_dict())
        except RemoteUnavailable as e:
            if self.duplicate_is_success and e.status in DUPLICATE_STATUSES:
                logger.info(f"{item.product_id} already present in remote {self.name}")
                return
            raise

    async def delete(self, product_id: str) -> None:
        await self.client.remove_item(self.name, product_id)

    async def clear(self) -> None:
        await self.client.clear_collection(self.name)
