"""
Tests for sales summaries and the leaderboard
"""

import csv
import io
import pytest
from decimal import Decimal

from troop_cookies.audit import InventoryAuditLog
from troop_cookies.errors import NotFoundError
from troop_cookies.ledger import InventoryLedger
from troop_cookies.members import MemberDirectory, ScoutLevel
from troop_cookies.products import ProductType
from troop_cookies.reporting import SalesReporter
from troop_cookies.storage import InMemoryStorage


class TestSalesReporter:
    """Dashboard figures"""

    def setup_method(self):
        storage = InMemoryStorage()
        self.directory = MemberDirectory(storage)
        self.ledger = InventoryLedger(storage, self.directory, InventoryAuditLog(storage))
        self.reporter = SalesReporter(self.directory, self.ledger)

        self.admin = self.directory.add_member("Courtney S", ScoutLevel.ORDER_CZAR, is_admin=True,
                                               username="courtneys", pin="pw")
        self.alice = self.directory.add_member("Alice Archer", ScoutLevel.JUNIOR)
        self.bella = self.directory.add_member("Bella Brooks", ScoutLevel.BROWNIE)
        self.ledger.ensure_member_records(self.alice.id, {ProductType.THIN_MINTS: 5, ProductType.TOFFEE_TASTIC: 2})
        self.ledger.ensure_member_records(self.bella.id, {ProductType.THIN_MINTS: 3})

    def test_profit_and_amount_owed(self):
        self.ledger.record_sale(self.alice, self.alice.id, ProductType.THIN_MINTS, 2)
        self.ledger.record_sale(self.alice, self.alice.id, ProductType.TOFFEE_TASTIC, 1)

        summary = self.reporter.member_summary(self.alice.id)

        assert summary.sold == 3
        assert summary.sold_value == Decimal("19")
        assert summary.troop_profit == Decimal("3")
        assert summary.owed_to_council == Decimal("16")
        assert summary.remaining == 4
        assert summary.total_value == Decimal("44")

    def test_troop_summary_excludes_admin(self):
        self.ledger.ensure_member_records(self.admin.id, {ProductType.SAMOAS: 50})
        summary = self.reporter.troop_summary()

        assert summary.starting == 10
        by_code = {p.product.code: p for p in summary.products}
        assert by_code["TMint"].starting == 8
        assert by_code["Sam"].starting == 0
        assert [p.product for p in summary.products] == list(ProductType)

    def test_transfers_net_to_zero_troop_wide(self):
        self.ledger.transfer(self.admin, self.alice.id, self.bella.id, "TMint", 4)
        summary = self.reporter.troop_summary()

        assert summary.additional == 0
        assert summary.remaining == 10

    def test_to_dict_uses_decimal_strings(self):
        self.ledger.record_sale(self.bella, self.bella.id, "TMint", 1)
        data = self.reporter.troop_summary().to_dict()

        assert data["total_boxes"] == 10
        assert data["sold_value"] == "6"
        assert data["troop_profit"] == "1.00"
        assert data["owed_to_council"] == "5.00"
        assert len(data["products"]) == len(ProductType)

    def test_member_summary_unknown(self):
        with pytest.raises(NotFoundError):
            self.reporter.member_summary("u_nobody")

    def test_leaderboard(self):
        self.ledger.record_sale(self.bella, self.bella.id, "TMint", 3)
        self.ledger.record_sale(self.alice, self.alice.id, "TMint", 1)

        rows = self.reporter.member_leaderboard()

        assert [r["name"] for r in rows] == ["Bella Brooks", "Alice Archer"]
        assert rows[0]["sold"] == 3
        assert rows[0]["remaining"] == 0
        assert rows[1]["level"] == "Junior"

    def test_export_csv(self):
        self.ledger.record_sale(self.alice, self.alice.id, "Toff", 1)
        rows = list(csv.reader(io.StringIO(self.reporter.export_csv(self.reporter.troop_summary()))))

        assert rows[0][0] == "Product"
        toffee = next(r for r in rows if r[0] == "Toffee-tastic")
        assert toffee[1:] == ["7", "2", "0", "1", "1", "7"]
        assert rows[-1][0] == "Total"
        assert rows[-1][4] == "1"
