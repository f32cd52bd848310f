"""
Cart and wishlist stores.

A store holds the authoritative in-memory collection for the current
owner and picks the write strategy from the owner: guests write
optimistically to local storage, signed-in owners write through the
remote API. Errors never escape a store; every mutation returns an
OperationResult.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Generic, List, Optional, Set, TypeVar

from storefront.config.logging_config import get_logger
from storefront.data.base_repository import CollectionRepository
from storefront.data.local_repository import LocalCollectionRepository
from storefront.data.models import CartLine, Product, WishlistEntry
from storefront.domain.backends import Change, ChangeKind, ConfirmedBackend, OptimisticBackend, WriteBackend
from storefront.domain.session import OwnerContext
from storefront.events.event_interface import EventEmitter, EventType, StoreEvent
from storefront.utils.error_handling import (
    LocalStorageUnavailable,
    OperationInProgress,
    StorefrontError,
)

logger = get_logger(__name__)

T = TypeVar('T')

# In-flight key used by clear(), which touches every item
ALL_ITEMS = "*"


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of a store operation.

    ``ok`` is False when the in-memory collection was left unchanged
    because the write failed. A guest write whose local save failed is
    still ``ok`` (the change is live for this session) but not
    ``persisted``.
    """

    ok: bool
    error: Optional[StorefrontError] = None
    persisted: bool = True

    @property
    def retryable(self) -> bool:
        return self.error is not None and self.error.retryable

    @classmethod
    def success(cls) -> 'OperationResult':
        return cls(ok=True)

    @classmethod
    def failure(cls, error: StorefrontError) -> 'OperationResult':
        return cls(ok=False, error=error, persisted=False)


class CollectionStore(Generic[T]):
    """
    Base store for a collection of items keyed by product id.

    Args:
        local: Guest storage repository
        remote: Account repository; required before an owner can sign in
        owner: Initial owner (guest by default)
        emitter: Optional emitter receiving store events
    """

    collection = ""
    updated_event = EventType.UNKNOWN

    def __init__(
        self,
        local: LocalCollectionRepository[T],
        remote: Optional[CollectionRepository[T]] = None,
        owner: Optional[OwnerContext] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.local = local
        self.remote = remote
        self.emitter = emitter
        self.owner = owner or OwnerContext.guest()
        self.backend: WriteBackend[T] = self._select_backend(self.owner)
        self.state = StoreState.UNINITIALIZED
        self._items: List[T] = []
        self._in_flight: Set[str] = set()
        self._merged_account: Optional[str] = None
        # Bumped on every owner change; results of older requests are dropped
        self._generation = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[T]:
        return list(self._items)

    @property
    def is_ready(self) -> bool:
        return self.state is StoreState.READY

    def contains(self, product_id: str) -> bool:
        return self._find(product_id) is not None

    def get(self, product_id: str) -> Optional[T]:
        return self._find(product_id)

    def is_pending(self, product_id: str) -> bool:
        """Whether a write touching ``product_id`` is awaiting the backend."""
        return product_id in self._in_flight or ALL_ITEMS in self._in_flight

    def _find(self, product_id: str) -> Optional[T]:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _select_backend(self, owner: OwnerContext) -> WriteBackend[T]:
        if owner.is_authenticated:
            if self.remote is None:
                raise RuntimeError(f"No remote repository configured for the {self.collection}")
            return ConfirmedBackend(self.remote)
        return OptimisticBackend(self.local)

    async def load(self) -> OperationResult:
        """
        Read the collection from the owner's backend.

        A failed or malformed read leaves the store ready with an empty
        collection; the error is reported in the result.
        """
        self.state = StoreState.LOADING
        generation = self._generation
        try:
            items = await self.backend.load()
            result = OperationResult.success()
        except StorefrontError as e:
            if generation != self._generation:
                return self._superseded("load")
            logger.warning(f"Loading {self.collection} for {self.owner} failed, starting empty: {e}")
            self._emit_error(e, "load")
            items = []
            result = OperationResult.failure(e)

        if generation != self._generation:
            return self._superseded("load")

        self._items = self._dedupe(items)
        self.state = StoreState.READY
        self._emit(EventType.STORE_READY, {"count": len(self._items)})
        logger.debug(f"{self.collection} ready for {self.owner} with {len(self._items)} item(s)")
        return result

    async def switch_owner(self, owner: OwnerContext) -> OperationResult:
        """Adopt ``owner`` without merging and reload from its backend."""
        self._adopt(owner)
        if not owner.is_authenticated:
            self._merged_account = None
        return await self.load()

    def _adopt(self, owner: OwnerContext) -> None:
        self.backend = self._select_backend(owner)
        self.owner = owner
        self._generation += 1
        self._in_flight = set()
        self._items = []
        self.state = StoreState.LOADING

    async def merge_on_sign_in(self, owner: OwnerContext) -> OperationResult:
        """
        Move the guest collection into the signed-in account.

        Every guest item whose product id is missing remotely is added
        remotely; items present on both sides keep the remote copy. Guest
        storage is cleared afterwards and the store reloads from the
        remote collection. If the remote API fails, guest storage is left
        intact so the merge can be retried.
        """
        if not owner.is_authenticated:
            raise ValueError("merge_on_sign_in requires an authenticated owner")
        if self._merged_account == owner.account_id and self.owner == owner:
            logger.debug(f"{self.collection} already merged for {owner}")
            return OperationResult.success()

        self._adopt(owner)
        generation = self._generation

        try:
            guest_items = await self.local.fetch_all()
        except StorefrontError as e:
            logger.warning(f"Guest {self.collection} unreadable, nothing to merge: {e}")
            guest_items = []

        added = 0
        try:
            remote_ids = {item.product_id for item in await self.remote.fetch_all()}
            for item in guest_items:
                if generation != self._generation:
                    break
                if item.product_id in remote_ids:
                    continue
                await self.remote.upsert(item)
                remote_ids.add(item.product_id)
                added += 1
        except StorefrontError as e:
            if generation != self._generation:
                return self._superseded("merge")
            logger.error(f"Merging guest {self.collection} into {owner} failed: {e}")
            self._emit_error(e, "merge")
            await self.load()
            return OperationResult.failure(e)

        if generation != self._generation:
            return self._superseded("merge")

        try:
            await self.local.clear()
        except LocalStorageUnavailable as e:
            logger.warning(f"Could not clear guest {self.collection} after merge: {e}")

        self._merged_account = owner.account_id
        logger.info(f"Merged {added} guest {self.collection} item(s) into {owner}")
        result = await self.load()
        self._emit(EventType.STORE_MERGED, {"added": added, "skipped": len(guest_items) - added})
        return result

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def remove_item(self, product_id: str) -> OperationResult:
        not_ready = self._check_ready()
        if not_ready is not None:
            return not_ready
        if self._find(product_id) is None:
            return OperationResult.success()
        return await self._commit(
            Change(kind=ChangeKind.REMOVE, product_id=product_id),
            lambda items: [i for i in items if i.product_id != product_id],
            product_id,
        )

    async def clear(self) -> OperationResult:
        not_ready = self._check_ready()
        if not_ready is not None:
            return not_ready
        return await self._commit(Change(kind=ChangeKind.CLEAR), lambda items: [], ALL_ITEMS)

    async def _upsert(self, item: T) -> OperationResult:
        def mutate(items: List[T]) -> List[T]:
            for index, existing in enumerate(items):
                if existing.product_id == item.product_id:
                    items[index] = item
                    return items
            items.append(item)
            return items

        return await self._commit(Change(kind=ChangeKind.UPSERT, item=item), mutate, item.product_id)

    async def _commit(
        self,
        change: Change,
        mutate: Callable[[List[T]], List[T]],
        key: str,
    ) -> OperationResult:
        if self._is_busy(key):
            error = OperationInProgress(f"A {self.collection} update for {key} is already in progress")
            return OperationResult.failure(error)

        generation = self._generation

        def apply() -> List[T]:
            if generation != self._generation:
                return []
            self._items = mutate(list(self._items))
            return self._items

        backend = self.backend
        in_flight = self._in_flight
        in_flight.add(key)
        try:
            await backend.write(change, apply)
        except StorefrontError as e:
            if generation != self._generation:
                return self._superseded(change.kind.value)
            return self._write_failed(change, e)
        finally:
            in_flight.discard(key)

        if generation != self._generation:
            return self._superseded(change.kind.value)

        self._emit(self.updated_event, {"change": change.kind.value, "persisted": True})
        return OperationResult.success()

    def _write_failed(self, change: Change, error: StorefrontError) -> OperationResult:
        if isinstance(error, LocalStorageUnavailable):
            logger.warning(f"{self.collection} changed for this session only: {error}")
            self._emit_error(error, change.kind.value)
            self._emit(self.updated_event, {"change": change.kind.value, "persisted": False})
            return OperationResult(ok=True, error=error, persisted=False)

        logger.error(f"{self.collection} {change.kind.value} failed for {self.owner}: {error}")
        self._emit_error(error, change.kind.value)
        return OperationResult.failure(error)

    def _superseded(self, operation: str) -> OperationResult:
        """Result of a request whose owner changed before it completed."""
        logger.info(f"{self.collection} {operation} finished after the owner changed; result dropped")
        return OperationResult.failure(
            OperationInProgress(f"The {self.collection} owner changed during {operation}")
        )

    def _is_busy(self, key: str) -> bool:
        if key == ALL_ITEMS:
            return bool(self._in_flight)
        return key in self._in_flight or ALL_ITEMS in self._in_flight

    def _check_ready(self) -> Optional[OperationResult]:
        """
        Refuse mutations until the collection is loaded.

        While loading (also during a sign-in merge) the refusal is a
        retryable result. Mutating a store that was never loaded is a
        programming error and raises RuntimeError.
        """
        if self.state is StoreState.UNINITIALIZED:
            raise RuntimeError(f"{self.collection} store is not loaded; call load() first")
        if self.state is StoreState.LOADING:
            return OperationResult.failure(
                OperationInProgress(f"The {self.collection} is loading; try again shortly")
            )
        return None

    @staticmethod
    def _dedupe(items: List[T]) -> List[T]:
        seen = set()
        result = []
        for item in items:
            if item.product_id in seen:
                continue
            seen.add(item.product_id)
            result.append(item)
        return result

    def _emit(self, event_type: EventType, data: dict) -> None:
        if self.emitter is not None:
            self.emitter.emit(StoreEvent(type=event_type, data=data, collection=self.collection))

    def _emit_error(self, error: StorefrontError, operation: str) -> None:
        if self.emitter is not None:
            self.emitter.emit(StoreEvent(
                type=EventType.STORE_ERROR,
                data={"operation": operation},
                collection=self.collection,
                error=error.to_dict(),
            ))


class CartStore(CollectionStore[CartLine]):
    """Cart lines of the current owner."""

    collection = "cart"
    updated_event = EventType.CART_UPDATED

    @property
    def count(self) -> int:
        """Number of units across all lines."""
        return sum(line.quantity for line in self._items)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._items), Decimal("0"))

    async def add_item(self, product: Product, quantity: int = 1) -> OperationResult:
        """Add ``quantity`` units of ``product``, growing an existing line."""
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        not_ready = self._check_ready()
        if not_ready is not None:
            return not_ready

        existing = self._find(product.product_id)
        if existing is not None:
            line = CartLine(
                product_id=existing.product_id,
                name=existing.name,
                unit_price=existing.unit_price,
                quantity=existing.quantity + quantity,
                image_refs=list(existing.image_refs),
            )
        else:
            line = CartLine.from_product(product, quantity)
        return await self._upsert(line)

    async def update_quantity(self, product_id: str, new_quantity: int) -> OperationResult:
        """Set a line's quantity; below 1 removes the line."""
        not_ready = self._check_ready()
        if not_ready is not None:
            return not_ready
        if new_quantity < 1:
            return await self.remove_item(product_id)

        existing = self._find(product_id)
        if existing is None:
            logger.debug(f"update_quantity ignored for {product_id}: not in cart")
            return OperationResult.success()
        if existing.quantity == new_quantity:
            return OperationResult.success()

        line = CartLine(
            product_id=existing.product_id,
            name=existing.name,
            unit_price=existing.unit_price,
            quantity=new_quantity,
            image_refs=list(existing.image_refs),
        )
        return await self._upsert(line)


class WishlistStore(CollectionStore[WishlistEntry]):
    """Wishlist entries of the current owner."""

    collection = "wishlist"
    updated_event = EventType.WISHLIST_UPDATED

    @property
    def count(self) -> int:
        return len(self._items)

    async def add_item(self, product: Product, quantity: int = 1) -> OperationResult:
        """Save a snapshot of ``product``; adding a saved product again is a no-op."""
        not_ready = self._check_ready()
        if not_ready is not None:
            return not_ready
        if self.contains(product.product_id):
            return OperationResult.success()
        return await self._upsert(WishlistEntry.from_product(product))
