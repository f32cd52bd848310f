"""
Event interface for the storefront.

This module defines the event types and the emitter used to signal session
transitions and store changes between components. Emitters are plain
objects handed to the components that need them; there is no global bus.
"""

import asyncio
import inspect
import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from storefront.config.logging_config import get_logger

logger = get_logger(__name__)


class EventType(Enum):
    """Types of events that can be emitted."""

    # Identity/session events
    SESSION_SIGNED_IN = "session.signed_in"
    SESSION_SIGNED_OUT = "session.signed_out"

    # Store events
    STORE_READY = "store.ready"
    CART_UPDATED = "cart.updated"
    WISHLIST_UPDATED = "wishlist.updated"
    STORE_MERGED = "store.merged"
    STORE_ERROR = "store.error"

    # Names that match no known type
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, event_type_str: str) -> 'EventType':
        """Look up an event type by its dotted name."""
        try:
            return next(e for e in cls if e.value == event_type_str)
        except StopIteration:
            logger.warning(f"Unrecognized event name: {event_type_str}")
            return cls.UNKNOWN


@dataclass
class Event:
    """Something that happened to a session or store."""

    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form with the type as its dotted name."""
        result = asdict(self)
        result['type'] = self.type.value
        return result

    def to_json(self) -> str:
        """Serialize for logs or a client channel."""
        return json.dumps(self.to_dict(), default=str)


@dataclass
class SessionEvent(Event):
    """Identity transition; ``account_id`` is None after sign-out."""

    account_id: Optional[str] = None


@dataclass
class StoreEvent(Event):
    """Change or failure in a cart/wishlist store."""

    collection: str = ""
    error: Optional[Dict[str, Any]] = None


# Type for event handlers
EventHandlerType = Callable[[Event], Any]


class EventEmitter:
    """
    Per-session publish/subscribe hub for session and store events.

    Handlers may be plain functions or coroutine functions. ``emit`` calls
    plain handlers directly; ``emit_async`` additionally awaits coroutine
    handlers in registration order.
    """

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandlerType]] = {}
        self._wildcard_handlers: List[EventHandlerType] = []

    def on(self, event_type: Union[EventType, str], handler: EventHandlerType) -> None:
        """
        Subscribe ``handler`` to one event type.

        Args:
            event_type: Event type or its dotted name
            handler: Callable receiving the event
        """
        if isinstance(event_type, str):
            event_type = EventType.from_string(event_type)

        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed to {event_type.value}")

    def on_any(self, handler: EventHandlerType) -> None:
        """Register a handler for all event types."""
        self._wildcard_handlers.append(handler)
        logger.debug("Subscribed to all events")

    def off(self, event_type: Union[EventType, str], handler: Optional[EventHandlerType] = None) -> None:
        """
        Unsubscribe from one event type.

        Args:
            event_type: Event type or its dotted name
            handler: Subscriber to drop; None drops every subscriber of the type
        """
        if isinstance(event_type, str):
            event_type = EventType.from_string(event_type)

        if event_type in self._handlers:
            if handler is None:
                self._handlers[event_type] = []
                logger.debug(f"Dropped all subscribers of {event_type.value}")
            else:
                try:
                    self._handlers[event_type].remove(handler)
                    logger.debug(f"Unsubscribed from {event_type.value}")
                except ValueError:
                    logger.warning(f"No such subscriber of {event_type.value}")

    def _handlers_for(self, event: Event) -> List[EventHandlerType]:
        return list(self._handlers.get(event.type, [])) + list(self._wildcard_handlers)

    def emit(self, event: Event) -> None:
        """
        Deliver ``event`` to its subscribers synchronously.

        Coroutines returned by handlers are closed unawaited and logged;
        use ``emit_async`` when async handlers are registered.

        Args:
            event: The event to emit
        """
        for handler in self._handlers_for(event):
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    result.close()
                    logger.warning(f"Async handler for {event.type.value} skipped; use emit_async")
            except Exception as e:
                logger.error(f"Subscriber of {event.type.value} failed: {e}")

    async def emit_async(self, event: Event) -> None:
        """
        Emit an event, awaiting coroutine handlers one after another.

        Args:
            event: The event to emit
        """
        for handler in self._handlers_for(event):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Subscriber of {event.type.value} failed: {e}")
