"""
Storefront session wiring.

This module brings together the pricing engine, the cart and wishlist
stores, guest storage, the remote API client and the identity signal for
one browser session. Each session owns its own instances, so independent
sessions (tests, server-side rendering) never share state.
"""

from typing import Optional

from storefront.config.logging_config import get_logger
from storefront.config.settings import Settings
from storefront.data.local_repository import LocalCollectionRepository
from storefront.data.local_storage import JsonFileStorage, KeyValueStorage
from storefront.data.models import CartLine, WishlistEntry
from storefront.data.remote_repository import RemoteCollectionRepository
from storefront.domain.checkout import CheckoutForm, OrderDraft, build_order_draft
from storefront.domain.pricing import CheckoutTotals, PricingEngine, ShippingTier
from storefront.domain.session import OwnerContext, SessionSignal
from storefront.domain.store import CartStore, OperationResult, WishlistStore
from storefront.events.event_interface import Event, EventEmitter, EventType
from storefront.services.api_client import StorefrontApiClient
from storefront.utils.error_handling import ItemUnavailable

logger = get_logger(__name__)


class StorefrontSession:
    """
    Per-session container for storefront state.

    The session subscribes to its identity signal: signing in merges the
    guest cart and wishlist into the account, signing out switches both
    stores back to guest storage.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[KeyValueStorage] = None,
        client: Optional[StorefrontApiClient] = None,
        emitter: Optional[EventEmitter] = None,
        engine: Optional[PricingEngine] = None,
    ):
        """
        Initialize the session.

        Args:
            settings: Settings to use (a fresh Settings() by default)
            storage: Guest key-value storage (a JSON file by default)
            client: Remote API client (built from settings by default)
            emitter: Event emitter shared by the session's components
            engine: Pricing engine (built from settings by default)
        """
        self.settings = settings or Settings()
        self.emitter = emitter or EventEmitter()
        self.storage = storage or JsonFileStorage(self.settings.storage.path)
        self.client = client or StorefrontApiClient(
            base_url=self.settings.api.base_url,
            timeout=self.settings.api.timeout,
        )
        self.engine = engine or PricingEngine(self.settings.pricing)
        self.signal = SessionSignal(self.emitter)

        self.cart = CartStore(
            local=LocalCollectionRepository(
                "cart", self.storage, self.settings.storage.cart_key, CartLine.from_dict
            ),
            remote=RemoteCollectionRepository("cart", self.client, CartLine.from_dict),
            emitter=self.emitter,
        )
        self.wishlist = WishlistStore(
            local=LocalCollectionRepository(
                "wishlist", self.storage, self.settings.storage.wishlist_key, WishlistEntry.from_dict
            ),
            remote=RemoteCollectionRepository(
                "wishlist", self.client, WishlistEntry.from_dict, duplicate_is_success=True
            ),
            emitter=self.emitter,
        )

        self.emitter.on(EventType.SESSION_SIGNED_IN, self._on_signed_in)
        self.emitter.on(EventType.SESSION_SIGNED_OUT, self._on_signed_out)

        logger.info("Storefront session initialized")

    @property
    def owner(self) -> OwnerContext:
        return self.signal.owner

    async def start(self) -> bool:
        """
        Load the cart and wishlist for the current owner.

        Returns:
            bool: True if both collections loaded without error
        """
        cart_result = await self.cart.load()
        wishlist_result = await self.wishlist.load()
        return cart_result.ok and wishlist_result.ok

    async def stop(self) -> None:
        """Release network resources."""
        await self.client.disconnect()
        logger.info("Storefront session stopped")

    async def sign_in(self, account_id: str, auth_token: Optional[str] = None) -> None:
        """Switch to an authenticated owner; the stores merge on the emitted event."""
        if auth_token is not None and auth_token != self.client.auth_token:
            await self.client.disconnect()
            self.client.auth_token = auth_token
        await self.signal.sign_in(account_id)

    async def sign_out(self) -> None:
        await self.signal.sign_out()
        await self.client.disconnect()
        self.client.auth_token = None

    async def _on_signed_in(self, event: Event) -> None:
        owner = OwnerContext.authenticated(event.account_id)
        for store in (self.cart, self.wishlist):
            result = await store.merge_on_sign_in(owner)
            if not result.ok:
                logger.warning(f"{store.collection} merge for {owner} needs a retry: {result.error}")

    async def _on_signed_out(self, event: Event) -> None:
        for store in (self.cart, self.wishlist):
            await store.switch_owner(OwnerContext.guest())

    async def retry_merge(self) -> OperationResult:
        """Retry a merge that failed at sign-in; the first failure is returned."""
        if not self.owner.is_authenticated:
            raise RuntimeError("Cannot merge while signed out")
        first_failure = None
        for store in (self.cart, self.wishlist):
            result = await store.merge_on_sign_in(self.owner)
            if not result.ok and first_failure is None:
                first_failure = result
        return first_failure or OperationResult.success()

    async def add_wishlist_item_to_cart(self, product_id: str) -> OperationResult:
        """
        Put one unit of a saved wishlist product into the cart.

        The wishlist entry stays saved. Out-of-stock entries are refused.
        """
        entry = self.wishlist.get(product_id)
        if entry is None:
            return OperationResult.failure(ItemUnavailable(f"{product_id} is not in the wishlist"))
        if not entry.in_stock:
            return OperationResult.failure(ItemUnavailable(f"{entry.name or product_id} is out of stock"))
        return await self.cart.add_item(entry.to_product(), 1)

    def quote_checkout(self, city: str, tier: ShippingTier = ShippingTier.STANDARD) -> CheckoutTotals:
        """Price the current cart for ``city`` and ``tier``."""
        return self.engine.checkout_totals(self.cart.subtotal, city, tier)

    def draft_order(self, form: CheckoutForm) -> OrderDraft:
        """Validate ``form`` against the current cart and build the order payload."""
        return build_order_draft(form, self.cart.items, self.engine, user_id=self.owner.account_id)
