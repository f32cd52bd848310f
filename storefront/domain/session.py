"""
Owner identity for cart and wishlist state.
"""

from dataclasses import dataclass
from typing import Optional

from storefront.config.logging_config import get_logger
from storefront.events.event_interface import EventEmitter, EventType, SessionEvent

logger = get_logger(__name__)


@dataclass(frozen=True)
class OwnerContext:
    """Who owns the current cart and wishlist.

    A guest is identified by the local storage bucket; an authenticated
    owner by ``account_id``.
    """

    account_id: Optional[str] = None

    @classmethod
    def guest(cls) -> 'OwnerContext':
        return cls()

    @classmethod
    def authenticated(cls, account_id: str) -> 'OwnerContext':
        if not account_id:
            raise ValueError("account_id is required for an authenticated owner")
        return cls(account_id=account_id)

    @property
    def is_authenticated(self) -> bool:
        return self.account_id is not None

    def __str__(self) -> str:
        return f"account:{self.account_id}" if self.is_authenticated else "guest"


class SessionSignal:
    """
    Read-only view of the signed-in identity, with transition events.

    The authentication layer calls ``sign_in``/``sign_out``; subscribers
    receive SESSION_SIGNED_IN / SESSION_SIGNED_OUT on ``emitter``.
    Repeating the current state emits nothing.
    """

    def __init__(self, emitter: EventEmitter, owner: Optional[OwnerContext] = None):
        self.emitter = emitter
        self._owner = owner or OwnerContext.guest()

    @property
    def owner(self) -> OwnerContext:
        return self._owner

    async def sign_in(self, account_id: str) -> None:
        owner = OwnerContext.authenticated(account_id)
        if owner == self._owner:
            return
        if self._owner.is_authenticated:
            # Switching accounts passes through guest so each sign-in is a fresh transition
            await self.sign_out()

        self._owner = owner
        logger.info(f"Signed in as {owner}")
        await self.emitter.emit_async(
            SessionEvent(type=EventType.SESSION_SIGNED_IN, account_id=account_id)
        )

    async def sign_out(self) -> None:
        if not self._owner.is_authenticated:
            return
        previous = self._owner
        self._owner = OwnerContext.guest()
        logger.info(f"Signed out {previous}")
        await self.emitter.emit_async(
            SessionEvent(type=EventType.SESSION_SIGNED_OUT, data={"previous_account_id": previous.account_id})
        )
