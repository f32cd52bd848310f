"""
Write strategies for cart and wishlist stores.

A guest's changes are applied in memory first and then saved to local
storage (optimistic). A signed-in owner's changes are sent to the remote
API first and applied in memory only once it confirms.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

from storefront.data.base_repository import CollectionRepository
from storefront.data.local_repository import LocalCollectionRepository

T = TypeVar('T')


class ChangeKind(Enum):
    UPSERT = "upsert"
    REMOVE = "remove"
    CLEAR = "clear"


@dataclass(frozen=True)
class Change:
    """One mutation of a collection."""

    kind: ChangeKind
    item: Optional[Any] = None
    product_id: Optional[str] = None


class WriteBackend(Generic[T], ABC):
    """Persists collection changes for one owner."""

    def __init__(self, repository: CollectionRepository[T]):
        self.repository = repository

    async def load(self) -> List[T]:
        return await self.repository.fetch_all()

    @abstractmethod
    async def write(self, change: Change, apply: Callable[[], List[T]]) -> None:
        """
        Persist ``change``; ``apply`` updates the in-memory collection and
        returns it.

        Raises:
            StorefrontError: If persisting failed
        """
        pass


class OptimisticBackend(WriteBackend[T]):
    """Mutate in memory, then save the whole collection locally."""

    def __init__(self, repository: LocalCollectionRepository[T]):
        super().__init__(repository)

    async def write(self, change: Change, apply: Callable[[], List[T]]) -> None:
        items = apply()
        await self.repository.save_all(items)


class ConfirmedBackend(WriteBackend[T]):
    """Send the change to the remote API; mutate in memory only on success."""

    async def write(self, change: Change, apply: Callable[[], List[T]]) -> None:
        if change.kind is ChangeKind.UPSERT:
            await self.repository.upsert(change.item)
        elif change.kind is ChangeKind.REMOVE:
            await self.repository.delete(change.product_id)
        else:
            await self.repository.clear()
        apply()
