"""
Test suite for peer-to-peer trades

Tests proposal validation, atomic settlement on acceptance, rejection and
response permissions.
"""

import pytest

from troop_cookies.audit import InventoryAuditLog
from troop_cookies.errors import (
    InsufficientStockError, NotFoundError, PersistenceError, UnauthorizedError,
    ValidationError
)
from troop_cookies.events import DomainEvent, EventDispatcher
from troop_cookies.ledger import InventoryField, InventoryLedger
from troop_cookies.members import MemberDirectory, ScoutLevel
from troop_cookies.products import ProductType
from troop_cookies.storage import InMemoryStorage
from troop_cookies.trades import TradeManager, TradeStatus


class AuditFailureStorage(InMemoryStorage):
    """Fails the Nth audit log write once armed"""

    def __init__(self):
        super().__init__()
        self.fail_on_write = None
        self.audit_writes = 0

    def save(self, table, record_id, data):
        if self.fail_on_write is not None and table == "inventory_log":
            self.audit_writes += 1
            if self.audit_writes == self.fail_on_write:
                raise IOError("connection lost")
        super().save(table, record_id, data)


class TradeTestCase:

    def setup_method(self):
        self.storage = self.make_storage()
        self.events = EventDispatcher()
        self.audit_log = InventoryAuditLog(self.storage)
        self.directory = MemberDirectory(self.storage)
        self.ledger = InventoryLedger(self.storage, self.directory, self.audit_log, self.events)
        self.trades = TradeManager(self.storage, self.directory, self.ledger, self.events)

        self.admin = self.directory.add_member("Courtney S", ScoutLevel.ORDER_CZAR, is_admin=True,
                                               username="courtneys", pin="pw")
        self.alice = self.directory.add_member("Alice Archer", ScoutLevel.JUNIOR)
        self.bella = self.directory.add_member("Bella Brooks", ScoutLevel.JUNIOR)
        self.carol = self.directory.add_member("Carol Cole", ScoutLevel.JUNIOR)
        for member in (self.alice, self.bella, self.carol):
            self.ledger.ensure_member_records(member.id)

        self.ledger.set_field(self.admin, self.alice.id, ProductType.THIN_MINTS, InventoryField.STARTING, 5)
        self.ledger.set_field(self.admin, self.bella.id, ProductType.SAMOAS, InventoryField.STARTING, 5)

        self.trade_events = []
        for event_type in (DomainEvent.TRADE_PROPOSED, DomainEvent.TRADE_ACCEPTED, DomainEvent.TRADE_REJECTED):
            self.events.subscribe(event_type, self.trade_events.append)

    def make_storage(self):
        return InMemoryStorage()

    def remaining(self, member, code):
        return self.ledger.get_remaining(member.id, code)


class TestTrades(TradeTestCase):
    """Trade lifecycle"""

    def test_propose(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {ProductType.SAMOAS: 3})

        assert trade.status == TradeStatus.PENDING
        assert trade.offering == {"TMint": 2}
        assert trade.requesting == {"Sam": 3}
        assert trade.from_member_name == "Alice Archer"
        assert trade.to_member_name == "Bella Brooks"
        assert self.trades.pending_for_member(self.bella.id)[0].id == trade.id
        assert self.trades.pending_for_member(self.alice.id) == []
        assert self.trade_events[-1].event_type == DomainEvent.TRADE_PROPOSED

    def test_propose_does_not_move_stock(self):
        self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {"Sam": 3})
        assert self.remaining(self.alice, "TMint") == 5
        assert self.remaining(self.bella, "Sam") == 5

    def test_zero_quantities_dropped(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2, "Tags": 0}, {"Sam": 0})
        assert trade.offering == {"TMint": 2}
        assert trade.requesting == {}

    def test_accept_settles_both_sides(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {"Sam": 3})
        entries_before = self.audit_log.count_entries()

        accepted = self.trades.respond(self.bella, trade.id, accept=True)

        assert accepted.status == TradeStatus.ACCEPTED
        assert accepted.resolved_at is not None
        assert self.remaining(self.alice, "TMint") == 3
        assert self.remaining(self.bella, "TMint") == 2
        assert self.remaining(self.bella, "Sam") == 2
        assert self.remaining(self.alice, "Sam") == 3

        new_entries = self.audit_log.list_entries()[:self.audit_log.count_entries() - entries_before]
        assert len(new_entries) == 4
        assert all(e.field == "additional" for e in new_entries)
        changed_by = {(e.member_id, e.product_code): e.changed_by for e in new_entries}
        assert changed_by[(self.alice.id, "TMint")] == "Trade with Bella Brooks"
        assert changed_by[(self.bella.id, "Sam")] == "Trade with Alice Archer"
        assert all(e.actor_id == self.bella.id for e in new_entries)

        assert self.trades.get_trade(trade.id).status == TradeStatus.ACCEPTED
        assert self.trade_events[-1].event_type == DomainEvent.TRADE_ACCEPTED

    def test_accept_without_stock_changes_nothing(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {"Sam": 3})
        self.ledger.record_sale(self.bella, self.bella.id, "Sam", 4)
        entries_before = self.audit_log.count_entries()

        with pytest.raises(InsufficientStockError):
            self.trades.respond(self.bella, trade.id, accept=True)

        assert self.remaining(self.alice, "TMint") == 5
        assert self.remaining(self.bella, "TMint") == 0
        assert self.remaining(self.bella, "Sam") == 1
        assert self.audit_log.count_entries() == entries_before
        assert self.trades.get_trade(trade.id).status == TradeStatus.PENDING

    def test_accept_twice_settles_once(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {})
        self.trades.respond(self.bella, trade.id, accept=True)
        again = self.trades.respond(self.bella, trade.id, accept=True)

        assert again.status == TradeStatus.ACCEPTED
        assert self.remaining(self.alice, "TMint") == 3
        assert self.remaining(self.bella, "TMint") == 2

    def test_reject(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {"Sam": 3})
        entries_before = self.audit_log.count_entries()

        rejected = self.trades.respond(self.bella, trade.id, accept=False)

        assert rejected.status == TradeStatus.REJECTED
        assert self.remaining(self.alice, "TMint") == 5
        assert self.audit_log.count_entries() == entries_before
        assert self.trades.pending_for_member(self.bella.id) == []

    def test_reject_is_idempotent(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {})
        first = self.trades.respond(self.bella, trade.id, accept=False)
        events_after_first = len(self.trade_events)

        second = self.trades.respond(self.bella, trade.id, accept=False)

        assert second.status == TradeStatus.REJECTED
        assert second.resolved_at == first.resolved_at
        assert len(self.trade_events) == events_after_first

    def test_rejecting_accepted_trade_keeps_it_accepted(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {})
        self.trades.respond(self.bella, trade.id, accept=True)

        result = self.trades.respond(self.bella, trade.id, accept=False)
        assert result.status == TradeStatus.ACCEPTED

    def test_only_counterparty_may_respond(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {})

        with pytest.raises(UnauthorizedError):
            self.trades.respond(self.alice, trade.id, accept=True)
        with pytest.raises(UnauthorizedError):
            self.trades.respond(self.carol, trade.id, accept=False)
        with pytest.raises(UnauthorizedError):
            self.trades.respond(self.admin, trade.id, accept=True)

        assert self.trades.get_trade(trade.id).is_pending

    def test_unknown_trade(self):
        with pytest.raises(NotFoundError):
            self.trades.respond(self.bella, "missing", accept=True)

    def test_trade_with_self(self):
        with pytest.raises(ValidationError):
            self.trades.propose(self.alice, self.alice.id, {"TMint": 1}, {})

    def test_empty_trade(self):
        with pytest.raises(ValidationError):
            self.trades.propose(self.alice, self.bella.id, {"TMint": 0}, {})

    @pytest.mark.parametrize("offering", [{"TMint": -1}, {"TMint": 1.5}, {"Oreo": 1}])
    def test_invalid_quantities(self, offering):
        with pytest.raises(ValidationError):
            self.trades.propose(self.alice, self.bella.id, offering, {})

    def test_unknown_counterparty(self):
        with pytest.raises(NotFoundError):
            self.trades.propose(self.alice, "u_nobody", {"TMint": 1}, {})

    def test_list_for_member(self):
        first = self.trades.propose(self.alice, self.bella.id, {"TMint": 1}, {})
        second = self.trades.propose(self.bella, self.carol.id, {"Sam": 1}, {})

        assert {t.id for t in self.trades.list_trades_for_member(self.bella.id)} == {first.id, second.id}
        assert [t.id for t in self.trades.list_trades_for_member(self.carol.id)] == [second.id]
        assert len(self.trades.list_trades()) == 2


class TestSettlementFailure(TradeTestCase):
    """A backend failure partway through settlement leaves no partial trade"""

    def make_storage(self):
        return AuditFailureStorage()

    def test_acceptance_rolled_back(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {"Sam": 3})
        before = {
            (m.id, code): self.remaining(m, code)
            for m in (self.alice, self.bella) for code in ("TMint", "Sam")
        }
        entries_before = self.audit_log.count_entries()
        self.trade_events.clear()

        # four netted legs; the third audit write fails
        self.storage.fail_on_write = 3
        with pytest.raises(PersistenceError) as exc_info:
            self.trades.respond(self.bella, trade.id, accept=True)

        assert isinstance(exc_info.value.cause, IOError)
        after = {
            (m.id, code): self.remaining(m, code)
            for m in (self.alice, self.bella) for code in ("TMint", "Sam")
        }
        assert after == before
        assert self.trades.get_trade(trade.id).status == TradeStatus.PENDING
        assert self.audit_log.count_entries() == entries_before
        assert self.audit_log.verify_integrity()['valid']
        assert self.trade_events == []

    def test_retry_after_failure_settles(self):
        trade = self.trades.propose(self.alice, self.bella.id, {"TMint": 2}, {"Sam": 3})
        self.storage.fail_on_write = 1
        with pytest.raises(PersistenceError):
            self.trades.respond(self.bella, trade.id, accept=True)

        self.storage.fail_on_write = None
        accepted = self.trades.respond(self.bella, trade.id, accept=True)

        assert accepted.status == TradeStatus.ACCEPTED
        assert self.remaining(self.alice, "TMint") == 3
        assert self.remaining(self.bella, "Sam") == 2
        assert self.audit_log.verify_integrity()['valid']
