"""
Booth and Meeting Scheduling Module

Cookie booth sign-up slots and troop meetings. Both are admin-managed;
scheduling or cancelling a meeting announces it through the notification
center.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Tuple

from .errors import NotFoundError, ValidationError
from .events import DomainEvent, EventDispatcher
from .logging_config import get_logger, log_action
from .members import Member, require_admin
from .notifications import NotificationCenter, NotificationType
from .storage import StorageInterface, StorageRecord


@dataclass
class Booth(StorageRecord):
    """Booth sale slot at a business"""
    business: str
    location: str
    date: str          # YYYY-MM-DD
    start_time: str    # e.g. 3:00pm
    end_time: str
    duration: str = ""
    notes: str = ""


@dataclass
class Meeting(StorageRecord):
    """Troop meeting"""
    title: str
    date: str
    start_time: str
    end_time: str = ""
    location: str = ""
    description: str = ""


_TIME_FORMATS = ("%I:%M%p", "%I:%M %p", "%I%p", "%H:%M")


def parse_time(value: str) -> Optional[time]:
    """Parse clock times as written on sign-up sheets (3:00pm, 3:00 PM, 15:00)"""
    text = (value or "").strip().upper()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def long_date(value: str) -> str:
    """2026-02-06 -> Friday, February 6"""
    d = parse_date(value)
    return f"{d.strftime('%A, %B')} {d.day}"


def _schedule_key(record_date: str, start_time: str) -> Tuple[str, time, str]:
    return (record_date, parse_time(start_time) or time.max, start_time)


class ScheduleManager:
    """Booths ('booths' table) and meetings ('meetings' table)"""

    def __init__(
        self,
        storage: StorageInterface,
        notifications: NotificationCenter,
        event_dispatcher: Optional[EventDispatcher] = None
    ):
        self.storage = storage
        self.notifications = notifications
        self.booth_table = "booths"
        self.meeting_table = "meetings"
        self.logger = get_logger("troop.scheduling")
        self._event_dispatcher = event_dispatcher

    def _emit(self, event_type: DomainEvent, entity_type: str, entity_id: str, data: Dict[str, Any]) -> None:
        if self._event_dispatcher:
            self._event_dispatcher.emit(event_type, entity_type, entity_id, data)

    @staticmethod
    def _validate_slot(record_date: str, start_time: str) -> None:
        parse_date(record_date)
        if not (start_time or "").strip():
            raise ValidationError("Start time is required")

    # Booths

    def add_booth(
        self,
        actor: Member,
        business: str,
        location: str,
        date: str,
        start_time: str,
        end_time: str,
        duration: str = "",
        notes: str = "",
        booth_id: Optional[str] = None
    ) -> Booth:
        require_admin(actor)
        if not (business or "").strip():
            raise ValidationError("Booth business name is required")
        self._validate_slot(date, start_time)

        now = datetime.now(timezone.utc)
        booth = Booth(
            id=booth_id or str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            business=business.strip(),
            location=location,
            date=date,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            notes=notes,
        )
        self.storage.save(self.booth_table, booth.id, booth.to_dict())

        log_action(
            self.logger, "info", f"Booth added: {booth.business} on {booth.date}",
            user_id=actor.id, action="add_booth", resource=f"booth:{booth.id}"
        )
        self._emit(DomainEvent.BOOTH_ADDED, "booth", booth.id, booth.to_dict())
        return booth

    def remove_booth(self, actor: Member, booth_id: str) -> None:
        require_admin(actor)
        if not self.storage.delete(self.booth_table, booth_id):
            raise NotFoundError("booth", booth_id)
        log_action(
            self.logger, "info", "Booth removed",
            user_id=actor.id, action="remove_booth", resource=f"booth:{booth_id}"
        )
        self._emit(DomainEvent.BOOTH_REMOVED, "booth", booth_id, {})

    def get_booth(self, booth_id: str) -> Optional[Booth]:
        data = self.storage.load(self.booth_table, booth_id)
        return Booth.from_dict(data) if data else None

    def list_booths(self) -> List[Booth]:
        """Booths ordered by date, then start time"""
        booths = [Booth.from_dict(data) for data in self.storage.load_all(self.booth_table)]
        return sorted(booths, key=lambda b: _schedule_key(b.date, b.start_time))

    # Meetings

    def add_meeting(
        self,
        actor: Member,
        title: str,
        date: str,
        start_time: str,
        end_time: str = "",
        location: str = "",
        description: str = ""
    ) -> Meeting:
        """Schedule a meeting and announce it; the announcement starts out read by the creator"""
        require_admin(actor)
        if not (title or "").strip():
            raise ValidationError("Meeting title is required")
        self._validate_slot(date, start_time)

        now = datetime.now(timezone.utc)
        meeting = Meeting(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            title=title.strip(),
            date=date,
            start_time=start_time,
            end_time=end_time,
            location=location,
            description=description,
        )
        self.storage.save(self.meeting_table, meeting.id, meeting.to_dict())

        message = f'"{meeting.title}" has been scheduled for {long_date(meeting.date)} at {meeting.start_time}.'
        if meeting.location:
            message += f" Location: {meeting.location}"
        self.notifications.publish(
            NotificationType.MEETING_ADDED, "New Troop Meeting", message, read_by=[actor.id]
        )

        log_action(
            self.logger, "info", f"Meeting scheduled: {meeting.title}",
            user_id=actor.id, action="add_meeting", resource=f"meeting:{meeting.id}",
            extra={"date": meeting.date, "start_time": meeting.start_time}
        )
        self._emit(DomainEvent.MEETING_ADDED, "meeting", meeting.id, meeting.to_dict())
        return meeting

    def remove_meeting(self, actor: Member, meeting_id: str) -> Meeting:
        require_admin(actor)
        meeting = self.get_meeting(meeting_id)
        if meeting is None:
            raise NotFoundError("meeting", meeting_id)
        self.storage.delete(self.meeting_table, meeting_id)

        self.notifications.publish(
            NotificationType.MEETING_DELETED, "Meeting Cancelled",
            f'"{meeting.title}" on {long_date(meeting.date)} has been cancelled.',
            read_by=[actor.id]
        )

        log_action(
            self.logger, "info", f"Meeting cancelled: {meeting.title}",
            user_id=actor.id, action="remove_meeting", resource=f"meeting:{meeting_id}"
        )
        self._emit(DomainEvent.MEETING_REMOVED, "meeting", meeting_id, meeting.to_dict())
        return meeting

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        data = self.storage.load(self.meeting_table, meeting_id)
        return Meeting.from_dict(data) if data else None

    def list_meetings(self) -> List[Meeting]:
        """Meetings ordered by date, then start time"""
        meetings = [Meeting.from_dict(data) for data in self.storage.load_all(self.meeting_table)]
        return sorted(meetings, key=lambda m: _schedule_key(m.date, m.start_time))

    def clear(self) -> None:
        self.storage.clear_table(self.booth_table)
        self.storage.clear_table(self.meeting_table)
