"""
Tests for TroopSystem wiring: first-run seeding, roster changes and reset
"""

import pytest

from troop_cookies.config import TroopConfig
from troop_cookies.errors import NotFoundError, UnauthorizedError, ValidationError
from troop_cookies.events import DomainEvent
from troop_cookies.members import ScoutLevel
from troop_cookies.products import ProductType
from troop_cookies.seed import SEED_BOOTHS, SEED_ROSTER
from troop_cookies.storage import InMemoryStorage
from troop_cookies.troop import TroopSystem


def make_system(seed=True):
    config = TroopConfig(seed_on_startup=seed, admin_password="pw", database_url="memory://")
    return TroopSystem(storage=InMemoryStorage(), config=config)


class TestInitialization:
    """First run and restarts"""

    def test_first_run_seeds_roster_and_booths(self):
        system = make_system()
        admin = system.initialize()

        assert admin.is_admin
        assert admin.username == "courtneys"
        assert system.directory.count() == len(SEED_ROSTER) + 1 == 39
        assert len(system.schedule.list_booths()) == len(SEED_BOOTHS) == 27
        assert system.schedule.get_booth("b1").date == "2026-02-06"

    def test_seeded_starting_inventory(self):
        system = make_system()
        system.initialize()

        abigail = next(m for m in system.directory.list_members() if m.name == "Abigail Newman")
        assert abigail.level == ScoutLevel.CADETTE
        record = system.ledger.get_record(abigail.id, ProductType.SAMOAS)
        assert record.starting == 79
        assert record.remaining == 79
        assert system.ledger.get_record(abigail.id, ProductType.DONATIONS).starting == 19

    def test_seeding_leaves_audit_log_empty(self):
        system = make_system()
        system.initialize()
        assert system.audit_log.count_entries() == 0

    def test_restart_does_not_reseed(self):
        system = make_system()
        system.initialize()
        system.initialize()
        assert system.directory.count() == 39

    def test_seed_disabled(self):
        system = make_system(seed=False)
        system.initialize()
        assert system.directory.count() == 1
        assert system.schedule.list_booths() == []


class TestRoster:
    """Admin roster changes"""

    def setup_method(self):
        self.system = make_system(seed=False)
        self.admin = self.system.initialize()

    def test_create_member_with_zero_inventory(self):
        seen = []
        self.system.events.subscribe(DomainEvent.MEMBER_CREATED, seen.append)

        member = self.system.create_member(self.admin, "Emma Sisk", ScoutLevel.AMBASSADOR)

        inventory = self.system.ledger.get_member_inventory(member.id)
        assert all(r.remaining == 0 for r in inventory.values())
        assert len(self.system.storage.find("inventory", {"member_id": member.id})) == len(ProductType)
        assert seen[0].entity_id == member.id

    def test_create_member_requires_admin(self):
        scout = self.system.create_member(self.admin, "Emma Sisk", ScoutLevel.AMBASSADOR)
        with pytest.raises(UnauthorizedError):
            self.system.create_member(scout, "Anna Rodriguez", ScoutLevel.SENIOR)

    def test_remove_member_cascades(self):
        member = self.system.create_member(self.admin, "Emma Sisk", ScoutLevel.AMBASSADOR)
        self.system.ledger.set_field(self.admin, member.id, "Sam", "starting", 10)

        self.system.remove_member(self.admin, member.id)

        assert self.system.directory.get_member(member.id) is None
        assert self.system.storage.find("inventory", {"member_id": member.id}) == []
        # history survives the member
        assert len(self.system.audit_log.list_entries(member_id=member.id)) == 1

    def test_remove_unknown_member(self):
        with pytest.raises(NotFoundError):
            self.system.remove_member(self.admin, "u_nobody")

    def test_admin_cannot_be_removed(self):
        with pytest.raises(ValidationError):
            self.system.remove_member(self.admin, self.admin.id)


class TestReset:
    """Full system reset"""

    def test_reset_restores_seed_and_clears_history(self):
        system = make_system()
        admin = system.initialize()

        scout = system.directory.list_members(include_admins=False)[0]
        system.ledger.set_field(admin, scout.id, "Sam", "starting", 500)
        system.create_member(admin, "New Scout", ScoutLevel.DAISY)
        system.schedule.add_meeting(admin, "Rally", "2026-03-05", "6:00pm")
        system.messages.send_message(admin, "hello troop")

        seen = []
        system.events.subscribe(DomainEvent.SYSTEM_RESET, seen.append)
        new_admin = system.reset(admin)

        assert new_admin.username == "courtneys"
        assert system.directory.count() == 39
        assert system.audit_log.count_entries() == 0
        assert system.notifications.list_notifications() == []
        assert system.messages.troop_messages() == []
        assert system.schedule.list_meetings() == []
        assert len(system.schedule.list_booths()) == 27
        assert len(seen) == 1

    def test_reset_requires_admin(self):
        system = make_system(seed=False)
        admin = system.initialize()
        scout = system.create_member(admin, "Emma Sisk", ScoutLevel.AMBASSADOR)

        with pytest.raises(UnauthorizedError):
            system.reset(scout)
        assert system.directory.count() == 2
