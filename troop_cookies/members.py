"""
Troop Member Directory

Roster of scouts and the troop administrator, username/PIN generation,
login, and the admin capability check used at every privileged entry point.
"""

import hmac
import random
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, UnauthorizedError, ValidationError
from .events import DomainEvent, EventDispatcher
from .logging_config import get_logger, log_action
from .storage import StorageInterface, StorageRecord


class ScoutLevel(Enum):
    """Scout program levels; OrderCzar marks the troop cookie manager"""
    DAISY = "Daisy"
    BROWNIE = "Brownie"
    JUNIOR = "Junior"
    CADETTE = "Cadette"
    SENIOR = "Senior"
    AMBASSADOR = "Ambassador"
    ORDER_CZAR = "OrderCzar"


BANNER_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


@dataclass
class Member(StorageRecord):
    """Troop member with login credentials"""
    username: str
    name: str
    level: ScoutLevel
    pin: str
    is_admin: bool = False
    is_online: bool = False
    banner_color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Member':
        data = dict(data)
        if isinstance(data.get('level'), str):
            data['level'] = ScoutLevel(data['level'])
        return super().from_dict(data)


def require_admin(actor: Optional[Member]) -> Member:
    """Capability check for admin-only operations"""
    if actor is None or not actor.is_admin:
        raise UnauthorizedError("This operation requires the troop administrator")
    return actor


def base_username(name: str) -> str:
    """First name plus initial of the last name, letters only"""
    clean = re.sub(r"[^a-z\s]", "", name.strip().lower())
    parts = clean.split()
    if not parts:
        raise ValidationError(f"Cannot derive a username from {name!r}")
    first = parts[0]
    return first + (parts[-1][0] if len(parts) > 1 else "")


class MemberDirectory:
    """Member roster backed by the 'users' table"""

    def __init__(self, storage: StorageInterface, admin_password: Optional[str] = None,
                 rng: Optional[random.Random] = None,
                 event_dispatcher: Optional[EventDispatcher] = None):
        self.storage = storage
        self.table_name = "users"
        self.admin_password = admin_password
        self._rng = rng or random.Random()
        self._event_dispatcher = event_dispatcher
        self.logger = get_logger("troop.members")

    def _publish_update(self, member: Member, changes: Dict[str, Any]) -> None:
        if self._event_dispatcher:
            self._event_dispatcher.emit(DomainEvent.MEMBER_UPDATED, "member", member.id, changes)

    # Lookup

    def get_member(self, member_id: str) -> Optional[Member]:
        data = self.storage.load(self.table_name, member_id)
        if not data:
            return None
        return Member.from_dict(data)

    def resolve_member(self, member_id: str) -> Member:
        """Get a member or raise NotFoundError"""
        member = self.get_member(member_id)
        if member is None:
            raise NotFoundError("member", member_id)
        return member

    def get_by_username(self, username: str) -> Optional[Member]:
        rows = self.storage.find(self.table_name, {'username': username.strip().lower()})
        if not rows:
            return None
        return Member.from_dict(rows[0])

    def list_members(self, include_admins: bool = True) -> List[Member]:
        """All members sorted by display name"""
        members = [Member.from_dict(data) for data in self.storage.load_all(self.table_name)]
        if not include_admins:
            members = [m for m in members if not m.is_admin]
        return sorted(members, key=lambda m: m.name.lower())

    def count(self) -> int:
        return self.storage.count(self.table_name)

    # Roster management

    def _unique_username(self, name: str) -> str:
        username = base_username(name)
        if not self.storage.exists(self.table_name, f"u_{username}"):
            return username

        parts = re.sub(r"[^a-z\s]", "", name.strip().lower()).split()
        longer = parts[0] + (parts[-1][:3] if len(parts) > 1 else "")
        candidate = longer
        while candidate == username or self.storage.exists(self.table_name, f"u_{candidate}"):
            candidate = longer + str(self._rng.randrange(9))
            longer = candidate
        return candidate

    def _save(self, member: Member) -> None:
        self.storage.save(self.table_name, member.id, member.to_dict())

    def add_member(self, name: str, level: ScoutLevel, is_admin: bool = False,
                   pin: Optional[str] = None, username: Optional[str] = None) -> Member:
        """
        Create a roster entry with a generated username and 4-digit PIN

        Args:
            name: Display name, e.g. "Emma Sisk"
            level: Scout level
            is_admin: Whether this is the troop administrator
            pin: Explicit credential; a random 4-digit PIN when omitted
            username: Explicit username; derived from the name when omitted

        Returns:
            The stored Member
        """
        if not name or not name.strip():
            raise ValidationError("Member name is required")

        username = username.strip().lower() if username else self._unique_username(name)
        member_id = f"u_{username}"
        if self.storage.exists(self.table_name, member_id):
            raise ValidationError(f"Username {username} is already taken")

        now = datetime.now(timezone.utc)
        member = Member(
            id=member_id,
            created_at=now,
            updated_at=now,
            username=username,
            name=name.strip(),
            level=level,
            pin=pin or str(1000 + secrets.randbelow(9000)),
            is_admin=is_admin,
        )
        self._save(member)

        log_action(
            self.logger, "info", f"Member created: {member.name}",
            action="create_member", resource=f"member:{member.id}",
            extra={"username": username, "level": level.value, "is_admin": is_admin}
        )
        return member

    def delete_member(self, member_id: str) -> Member:
        """Delete a roster entry. Inventory cascade is handled by the caller."""
        member = self.resolve_member(member_id)
        self.storage.delete(self.table_name, member_id)
        log_action(
            self.logger, "info", f"Member removed: {member.name}",
            action="remove_member", resource=f"member:{member_id}"
        )
        return member

    def ensure_admin(self, username: str, password: str, display_name: str) -> Member:
        """Create the administrator account, or bring its password in line with configuration"""
        admin = self.get_by_username(username)
        if admin is None:
            return self.add_member(display_name, ScoutLevel.ORDER_CZAR, is_admin=True,
                                   pin=password, username=username)
        if admin.pin != password:
            admin.pin = password
            admin.updated_at = datetime.now(timezone.utc)
            self._save(admin)
        return admin

    # Session

    def authenticate(self, username: str, secret: str) -> Member:
        """
        Check a username and PIN (or admin password) and mark the member online

        Raises:
            UnauthorizedError: unknown username or wrong secret
        """
        member = self.get_by_username(username or "")
        if member is None or not self._secret_matches(member, secret or ""):
            log_action(
                self.logger, "warning", "Login failed",
                action="login_failed", resource="auth",
                extra={"username": (username or "").strip().lower()}
            )
            raise UnauthorizedError("Invalid credentials")

        member.is_online = True
        member.updated_at = datetime.now(timezone.utc)
        self._save(member)

        log_action(self.logger, "info", "Member logged in", user_id=member.id, action="login", resource="auth")
        self._publish_update(member, {"is_online": True})
        return member

    def _secret_matches(self, member: Member, secret: str) -> bool:
        if hmac.compare_digest(member.pin.encode(), secret.encode()):
            return True
        if member.is_admin and self.admin_password:
            return hmac.compare_digest(self.admin_password.encode(), secret.encode())
        return False

    def logout(self, member_id: str) -> None:
        member = self.resolve_member(member_id)
        member.is_online = False
        member.updated_at = datetime.now(timezone.utc)
        self._save(member)
        self._publish_update(member, {"is_online": False})

    def set_banner_color(self, member_id: str, color: str) -> Member:
        """Set a member's dashboard banner colour (#RRGGBB)"""
        if not BANNER_COLOR_PATTERN.match(color or ""):
            raise ValidationError(f"Invalid banner colour: {color}")
        member = self.resolve_member(member_id)
        member.banner_color = color
        member.updated_at = datetime.now(timezone.utc)
        self._save(member)
        self._publish_update(member, {"banner_color": color})
        return member

    def clear(self) -> None:
        self.storage.clear_table(self.table_name)
