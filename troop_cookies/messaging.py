"""
Troop Messaging Module

Troop-wide chat plus direct messages between two members. A message with
no recipient is visible to everyone; a direct message only to its sender
and recipient.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .errors import ValidationError
from .events import DomainEvent, EventDispatcher
from .logging_config import get_logger, log_action
from .members import Member, MemberDirectory
from .storage import StorageInterface, StorageRecord


MAX_MESSAGE_LENGTH = 2000


@dataclass
class ChatMessage(StorageRecord):
    """Chat message; recipient_id None means troop-wide"""
    sender_id: str
    sender_name: str
    content: str
    recipient_id: Optional[str] = None

    @property
    def is_direct(self) -> bool:
        return self.recipient_id is not None

    def involves(self, member_id: str) -> bool:
        return self.sender_id == member_id or self.recipient_id == member_id


class MessageBoard:
    """Chat messages backed by the 'messages' table"""

    def __init__(
        self,
        storage: StorageInterface,
        directory: MemberDirectory,
        event_dispatcher: Optional[EventDispatcher] = None
    ):
        self.storage = storage
        self.directory = directory
        self.table_name = "messages"
        self.logger = get_logger("troop.messaging")
        self._event_dispatcher = event_dispatcher

    def send_message(self, sender: Member, content: str, recipient_id: Optional[str] = None) -> ChatMessage:
        """
        Post to the troop channel, or directly to one member

        Raises:
            ValidationError: blank or oversized content, or messaging yourself
            NotFoundError: unknown recipient
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message cannot be empty")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")
        if recipient_id is not None:
            if recipient_id == sender.id:
                raise ValidationError("Cannot send a direct message to yourself")
            self.directory.resolve_member(recipient_id)

        now = datetime.now(timezone.utc)
        message = ChatMessage(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            sender_id=sender.id,
            sender_name=sender.name,
            content=content,
            recipient_id=recipient_id,
        )
        self.storage.save(self.table_name, message.id, message.to_dict())

        log_action(
            self.logger, "info", "Direct message sent" if message.is_direct else "Troop message sent",
            user_id=sender.id, action="send_message", resource=f"message:{message.id}",
            extra={"recipient_id": recipient_id, "length": len(content)}
        )
        if self._event_dispatcher:
            self._event_dispatcher.emit(
                DomainEvent.MESSAGE_SENT, "message", message.id,
                {"sender_id": sender.id, "recipient_id": recipient_id}
            )
        return message

    def _all_messages(self) -> List[ChatMessage]:
        messages = [ChatMessage.from_dict(data) for data in self.storage.load_all(self.table_name)]
        return sorted(messages, key=lambda m: m.created_at)

    def troop_messages(self) -> List[ChatMessage]:
        return [m for m in self._all_messages() if not m.is_direct]

    def visible_messages(self, member: Member) -> List[ChatMessage]:
        """Troop-wide messages plus direct messages the member sent or received, oldest first"""
        return [m for m in self._all_messages() if not m.is_direct or m.involves(member.id)]

    def conversation(self, member_id: str, other_id: str) -> List[ChatMessage]:
        """Direct messages between two members, oldest first"""
        return [
            m for m in self._all_messages()
            if m.is_direct and {m.sender_id, m.recipient_id} == {member_id, other_id}
        ]

    def conversation_partners(self, member: Member) -> List[str]:
        """Ids of members this member has exchanged direct messages with, most recent first"""
        partners: List[str] = []
        for message in reversed(self._all_messages()):
            if not message.is_direct or not message.involves(member.id):
                continue
            other = message.recipient_id if message.sender_id == member.id else message.sender_id
            if other not in partners:
                partners.append(other)
        return partners

    def clear(self) -> None:
        self.storage.clear_table(self.table_name)
