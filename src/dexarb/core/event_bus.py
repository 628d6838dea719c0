"""
Internal event bus for decoupled communication.

The scanner publishes scan lifecycle events here; the dashboard and
the CLI reporter subscribe without the scanner knowing about them.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar


logger = logging.getLogger(__name__)


class EventType(Enum):
    """System event types."""

    # Scan lifecycle
    SCAN_STARTED = auto()
    SCAN_COMPLETE = auto()

    # Venue events
    VENUE_STATUS = auto()

    # Strategy events
    OPPORTUNITY_FOUND = auto()

    # System events
    ERROR = auto()
    SHUTDOWN = auto()


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp_us: int = 0
    source: str = ""


# Type alias for event handlers
EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Async-safe event bus for internal messaging.

    Features:
    - Async and sync handler support
    - Priority-based handler ordering
    - Error isolation per handler
    """

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def _dispatch_sync(self, event: Event[Any]) -> None:
        for _, sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception:
                logger.exception("Sync handler error for %s", event.type.name)

    async def publish(self, event: Event[Any]) -> None:
        """
        Publish an event to all subscribers.

        Sync handlers run first, then async handlers in priority order.
        A failing handler is logged and does not affect the others.
        """
        self._dispatch_sync(event)

        for _, async_handler in self._handlers[event.type]:
            try:
                await async_handler(event)
            except Exception:
                logger.exception("Async handler error for %s", event.type.name)
