"""
RowModel Events - Synchronous Observer Channel

Entities and collections publish change notifications through an
EventChannel. Handlers run synchronously in subscription order; a handler
that raises is logged and does not stop the remaining handlers.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of entity and collection events"""
    DATA_UPDATED = "data.updated"
    LIST_CHANGED = "list.changed"
    BEFORE_SAVE = "entity.before_save"
    SAVED = "entity.saved"
    BEFORE_REMOVE = "entity.before_remove"
    REMOVED = "entity.removed"


@dataclass
class EntityEvent:
    """
    Notification published by an entity or a sub-item collection.

    ``field_name`` and ``table_name`` describe what changed for
    DATA_UPDATED; ``row`` is the affected row for LIST_CHANGED.
    Handlers of BEFORE_SAVE / BEFORE_REMOVE may set ``cancel``.
    """
    event_type: EventType
    source: Any = None
    field_name: str = ""
    table_name: str = ""
    row: Any = None
    cancel: bool = False
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def cancelable(self) -> bool:
        return self.event_type in (EventType.BEFORE_SAVE, EventType.BEFORE_REMOVE)


EventHandler = Callable[[EntityEvent], None]


class EventChannel:
    """In-process, synchronous publish/subscribe channel."""

    def __init__(self):
        self._subscribers: List[Tuple[Optional[EventType], EventHandler]] = []

    def subscribe(self, handler: EventHandler, event_type: Optional[EventType] = None) -> None:
        """
        Subscribe a handler.

        Args:
            handler: Callable receiving the EntityEvent
            event_type: Only deliver events of this type; all events if omitted
        """
        self._subscribers.append((event_type, handler))

    def unsubscribe(self, handler: EventHandler, event_type: Optional[EventType] = None) -> None:
        """Remove a handler (all of its subscriptions if ``event_type`` is omitted)."""
        self._subscribers = [
            (subscribed_type, subscribed) for subscribed_type, subscribed in self._subscribers
            if not (subscribed == handler and (event_type is None or subscribed_type == event_type))
        ]

    def publish(self, event: EntityEvent) -> EntityEvent:
        """Deliver ``event`` to matching handlers and return it."""
        for event_type, handler in list(self._subscribers):
            if event_type is not None and event_type != event.event_type:
                continue
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Event handler {handler!r} raised on {event.event_type.value}: {e}")
        return event

    def clear(self) -> None:
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)


__all__ = ["EventType", "EntityEvent", "EventHandler", "EventChannel"]
