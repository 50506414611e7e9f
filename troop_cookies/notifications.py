"""
Troop Notifications Module

Troop-wide announcements (meeting scheduled, meeting cancelled) with
per-member read tracking. Delivery beyond the in-app feed goes through
channel providers; the webhook provider posts each notification with
requests when a URL is configured.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from .events import DomainEvent, EventDispatcher
from .logging_config import get_logger, log_action
from .storage import StorageInterface, StorageRecord


class NotificationType(Enum):
    """Kinds of troop notification"""
    MEETING_ADDED = "meeting_added"
    MEETING_DELETED = "meeting_deleted"


@dataclass
class TroopNotification(StorageRecord):
    """Troop-wide notification; read_by lists the members who have seen it"""
    notification_type: NotificationType
    title: str
    message: str
    read_by: List[str] = field(default_factory=list)

    def is_read_by(self, member_id: str) -> bool:
        return member_id in self.read_by


class ChannelProvider(ABC):
    """Delivery channel for published notifications"""

    @abstractmethod
    def send(self, notification: TroopNotification) -> bool:
        """Deliver a notification. Returns True if successful."""
        pass


class LogChannelProvider(ChannelProvider):
    """Writes each notification to the application log"""

    def __init__(self, logger=None):
        self.logger = logger or get_logger("troop.notifications")

    def send(self, notification: TroopNotification) -> bool:
        self.logger.info(f"Notification {notification.notification_type.value}: {notification.title} | {notification.message}")
        return True


class WebhookChannelProvider(ChannelProvider):
    """POSTs notifications to an external webhook (chat bridge, mailing list relay)"""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout
        self.logger = get_logger("troop.notifications")

    def send(self, notification: TroopNotification) -> bool:
        payload = {
            "notification_id": notification.id,
            "type": notification.notification_type.value,
            "title": notification.title,
            "message": notification.message,
            "timestamp": notification.created_at.isoformat(),
        }
        try:
            response = requests.post(
                self.url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"}
            )
            return response.status_code < 300
        except requests.RequestException as e:
            self.logger.warning(f"Webhook send failed for notification {notification.id}: {e}")
            return False


class NotificationCenter:
    """Stores troop notifications and fans them out to channel providers"""

    def __init__(
        self,
        storage: StorageInterface,
        event_dispatcher: Optional[EventDispatcher] = None,
        providers: Optional[List[ChannelProvider]] = None
    ):
        self.storage = storage
        self.table_name = "notifications"
        self.logger = get_logger("troop.notifications")
        self._event_dispatcher = event_dispatcher
        self.providers: List[ChannelProvider] = list(providers) if providers is not None else [LogChannelProvider()]

    def register_provider(self, provider: ChannelProvider) -> None:
        self.providers.append(provider)

    def publish(
        self,
        notification_type: NotificationType,
        title: str,
        message: str,
        read_by: Optional[List[str]] = None
    ) -> TroopNotification:
        """Store a notification and hand it to every provider"""
        now = datetime.now(timezone.utc)
        notification = TroopNotification(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            notification_type=notification_type,
            title=title,
            message=message,
            read_by=list(read_by or []),
        )
        self.storage.save(self.table_name, notification.id, notification.to_dict())

        delivered = 0
        for provider in self.providers:
            if provider.send(notification):
                delivered += 1

        log_action(
            self.logger, "info", f"Notification published: {title}",
            action="publish_notification", resource=f"notification:{notification.id}",
            extra={"type": notification_type.value, "providers": len(self.providers), "delivered": delivered}
        )
        if self._event_dispatcher:
            self._event_dispatcher.emit(
                DomainEvent.NOTIFICATION_PUBLISHED, "notification", notification.id,
                {"type": notification_type.value, "title": title, "message": message}
            )
        return notification

    def list_notifications(self) -> List[TroopNotification]:
        """All notifications, newest first"""
        notifications = [self._notification_from_dict(data) for data in self.storage.load_all(self.table_name)]
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    def mark_all_read(self, member_id: str) -> int:
        """Mark every notification read for one member; returns how many changed"""
        changed = 0
        for notification in self.list_notifications():
            if notification.is_read_by(member_id):
                continue
            notification.read_by.append(member_id)
            notification.updated_at = datetime.now(timezone.utc)
            self.storage.save(self.table_name, notification.id, notification.to_dict())
            changed += 1
        return changed

    def unread_count(self, member_id: str) -> int:
        return sum(1 for n in self.list_notifications() if not n.is_read_by(member_id))

    def clear(self) -> None:
        self.storage.clear_table(self.table_name)

    def _notification_from_dict(self, data: Dict[str, Any]) -> TroopNotification:
        data = dict(data)
        data['notification_type'] = NotificationType(data['notification_type'])
        return TroopNotification.from_dict(data)
