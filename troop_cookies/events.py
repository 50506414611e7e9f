"""
Event System Module

Publish/subscribe dispatcher through which the troop application state
announces changes. Subscribers (API push channels, webhooks, UI refreshers)
register here instead of polling shared globals.
"""

from enum import Enum
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid
import logging
from threading import RLock


class DomainEvent(Enum):
    """Domain events raised by the troop application"""

    # Inventory events
    INVENTORY_CHANGED = "inventory.changed"

    # Trade events
    TRADE_PROPOSED = "trade.proposed"
    TRADE_ACCEPTED = "trade.accepted"
    TRADE_REJECTED = "trade.rejected"

    # Roster events
    MEMBER_CREATED = "member.created"
    MEMBER_REMOVED = "member.removed"
    MEMBER_UPDATED = "member.updated"

    # Calendar events
    BOOTH_ADDED = "booth.added"
    BOOTH_REMOVED = "booth.removed"
    MEETING_ADDED = "meeting.added"
    MEETING_REMOVED = "meeting.removed"

    # Communication events
    MESSAGE_SENT = "message.sent"
    NOTIFICATION_PUBLISHED = "notification.published"

    # System events
    SYSTEM_RESET = "system.reset"


@dataclass
class EventPayload:
    """Payload for domain events"""
    event_type: DomainEvent
    entity_type: str
    entity_id: str
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'data': self.data,
            'timestamp': self.timestamp.isoformat(),
            'event_id': self.event_id
        }


Handler = Callable[[EventPayload], None]


class EventDispatcher:
    """Central event dispatcher, publish/subscribe pattern"""

    def __init__(self):
        self._handlers: Dict[DomainEvent, List[Handler]] = {}
        self._global_handlers: List[Handler] = []  # catch-all handlers
        self._lock = RLock()
        self.logger = logging.getLogger("troop.events")

    def subscribe(self, event_type: DomainEvent, handler: Handler) -> None:
        """Subscribe to a specific event type"""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed handler {_handler_name(handler)} to {event_type.value}")

    def subscribe_all(self, handler: Handler) -> None:
        """Subscribe to ALL events"""
        with self._lock:
            self._global_handlers.append(handler)
            self.logger.debug(f"Subscribed global handler {_handler_name(handler)}")

    def unsubscribe(self, event_type: DomainEvent, handler: Handler) -> None:
        """Unsubscribe from a specific event type"""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
            else:
                self.logger.warning(f"Handler {_handler_name(handler)} was not subscribed to {event_type.value}")

    def unsubscribe_all(self, handler: Handler) -> None:
        """Remove a catch-all handler"""
        with self._lock:
            if handler in self._global_handlers:
                self._global_handlers.remove(handler)
            else:
                self.logger.warning(f"Global handler {_handler_name(handler)} was not subscribed")

    def publish(self, event: EventPayload) -> None:
        """Publish event to all subscribers"""
        with self._lock:
            handlers = list(self._handlers.get(event.event_type, [])) + list(self._global_handlers)

        self.logger.debug(f"Publishing event {event.event_type.value} for {event.entity_type}:{event.entity_id}")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Subscribers are fire-and-forget; the originating operation has already committed
                self.logger.error(f"Error in event handler {_handler_name(handler)} for {event.event_type.value}: {e}")

    def emit(self, event_type: DomainEvent, entity_type: str, entity_id: str,
             data: Optional[Dict[str, Any]] = None) -> EventPayload:
        """Build and publish an event in one call"""
        event = EventPayload(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            data=data or {}
        )
        self.publish(event)
        return event

    def clear(self) -> None:
        """Clear all handlers"""
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()

    def get_handler_count(self, event_type: Optional[DomainEvent] = None) -> int:
        """Get count of handlers for a specific event type or all"""
        with self._lock:
            if event_type:
                return len(self._handlers.get(event_type, []))
            total = sum(len(handlers) for handlers in self._handlers.values())
            return total + len(self._global_handlers)


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__name__", repr(handler))
