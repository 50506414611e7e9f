"""
Troop application state

TroopSystem owns one storage backend and wires every component over it.
Callers go through its components (ledger, trades, schedule, ...) and
subscribe to ``events`` for change notifications.
"""

from typing import Optional

from .audit import InventoryAuditLog
from .config import TroopConfig, get_config
from .errors import ValidationError
from .events import DomainEvent, EventDispatcher
from .imports import InventoryImporter
from .ledger import InventoryLedger
from .logging_config import get_logger, log_action
from .members import Member, MemberDirectory, ScoutLevel, require_admin
from .messaging import MessageBoard
from .notifications import LogChannelProvider, NotificationCenter, WebhookChannelProvider
from .reporting import SalesReporter
from .scheduling import ScheduleManager
from .seed import SEED_BOOTHS, SEED_ROSTER, starting_inventory
from .storage import StorageInterface, create_storage
from .trades import TradeManager


class TroopSystem:
    """Troop cookie tracker with all components initialized"""

    def __init__(self, storage: Optional[StorageInterface] = None, config: Optional[TroopConfig] = None):
        self.config = config or get_config()
        self.storage = storage or create_storage(self.config.database_url)
        self.logger = get_logger("troop.system")

        self.events = EventDispatcher()
        self.audit_log = InventoryAuditLog(self.storage)
        self.directory = MemberDirectory(self.storage, admin_password=self.config.admin_password,
                                         event_dispatcher=self.events)
        self.ledger = InventoryLedger(self.storage, self.directory, self.audit_log, self.events)
        self.trades = TradeManager(self.storage, self.directory, self.ledger, self.events)
        self.notifications = NotificationCenter(self.storage, self.events, self._create_providers())
        self.schedule = ScheduleManager(self.storage, self.notifications, self.events)
        self.messages = MessageBoard(self.storage, self.directory, self.events)
        self.importer = InventoryImporter(self.directory, self.ledger)
        self.reporter = SalesReporter(self.directory, self.ledger)

    def _create_providers(self):
        providers = [LogChannelProvider()]
        if self.config.notification_webhook_url:
            providers.append(WebhookChannelProvider(
                self.config.notification_webhook_url,
                timeout=self.config.notification_webhook_timeout
            ))
        return providers

    # Lifecycle

    def initialize(self) -> Member:
        """Seed an empty database, and make sure the admin account matches configuration"""
        first_run = self.directory.count() == 0
        admin = self.directory.ensure_admin(
            self.config.admin_username, self.config.admin_password, self.config.admin_display_name
        )
        if first_run and self.config.seed_on_startup:
            self.seed(admin)
        return admin

    def seed(self, admin: Member) -> None:
        """Load the troop roster with starting inventory and the booth sign-up list"""
        with self.storage.atomic():
            for name, level, counts in SEED_ROSTER:
                member = self.directory.add_member(name, level)
                self.ledger.ensure_member_records(member.id, starting_inventory(counts))
            for booth_id, (business, location), notes, date, start, end, duration in SEED_BOOTHS:
                self.schedule.add_booth(admin, business, location, date, start, end,
                                        duration=duration, notes=notes, booth_id=booth_id)

        log_action(
            self.logger, "info", "Seed data loaded",
            user_id=admin.id, action="seed", resource="system",
            extra={"members": len(SEED_ROSTER), "booths": len(SEED_BOOTHS)}
        )

    def reset(self, actor: Member) -> Member:
        """
        Wipe every table, the audit log included, and re-seed

        Returns:
            The recreated admin account
        """
        require_admin(actor)
        with self.storage.atomic():
            self.audit_log.clear()
            self.notifications.clear()
            self.messages.clear()
            self.trades.clear()
            self.ledger.clear()
            self.schedule.clear()
            self.directory.clear()

        log_action(self.logger, "warning", "System reset", user_id=actor.id, action="reset", resource="system")
        admin = self.initialize()
        self.events.emit(DomainEvent.SYSTEM_RESET, "system", "troop", {"actor_id": actor.id})
        return admin

    def close(self) -> None:
        self.storage.close()

    # Roster

    def create_member(self, actor: Member, name: str, level: ScoutLevel) -> Member:
        """Admin adds a scout; the new member starts with all-zero inventory for every product"""
        require_admin(actor)
        with self.storage.atomic():
            member = self.directory.add_member(name, level)
            self.ledger.ensure_member_records(member.id)

        self.events.emit(DomainEvent.MEMBER_CREATED, "member", member.id,
                         {"name": member.name, "level": member.level.value})
        return member

    def remove_member(self, actor: Member, member_id: str) -> Member:
        """Admin removes a member together with their inventory records"""
        require_admin(actor)
        member = self.directory.resolve_member(member_id)
        if member.is_admin:
            raise ValidationError("The troop administrator cannot be removed")

        with self.ledger.transaction():
            removed_records = self.ledger.delete_member_records(member_id)
            self.directory.delete_member(member_id)

        log_action(
            self.logger, "info", f"Member {member.name} removed with {removed_records} inventory records",
            user_id=actor.id, action="remove_member", resource=f"member:{member_id}"
        )
        self.events.emit(DomainEvent.MEMBER_REMOVED, "member", member_id, {"name": member.name})
        return member
