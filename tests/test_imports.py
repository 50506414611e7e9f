"""
Tests for council report CSV import
"""

import pytest

from troop_cookies.audit import InventoryAuditLog
from troop_cookies.errors import PersistenceError, UnauthorizedError, ValidationError
from troop_cookies.imports import (
    ImportMode, InventoryImporter, generate_template_csv, parse_quantity, parse_report
)
from troop_cookies.ledger import InventoryLedger
from troop_cookies.members import MemberDirectory, ScoutLevel
from troop_cookies.products import ProductType
from troop_cookies.storage import InMemoryStorage


REPORT = (
    "Scout Name,Thin Mints,Samoas,Notes\n"
    "Emma Sisk,12,6,first order\n"
    "annar,\"1,024\",,\n"
    "Zed Unknown,3,,\n"
    ",4,4,\n"
)


class TestParseReport:
    """CSV parsing"""

    def test_parse_entries_and_row_errors(self):
        report = parse_report(REPORT)

        assert report.scout_names == ["Emma Sisk", "annar", "Zed Unknown"]
        quantities = {(e.scout_name, e.product): e.quantity for e in report.entries}
        assert quantities == {
            ("Emma Sisk", ProductType.THIN_MINTS): 12,
            ("Emma Sisk", ProductType.SAMOAS): 6,
            ("annar", ProductType.THIN_MINTS): 1024,
            ("Zed Unknown", ProductType.THIN_MINTS): 3,
        }
        assert report.errors == ["Row 5: Could not identify scout name"]

    def test_byte_order_mark(self):
        report = parse_report("\ufeffName,Tagalongs\nEmma Sisk,2\n")
        assert report.entries[0].product is ProductType.TAGALONGS

    def test_empty_file(self):
        with pytest.raises(ValidationError):
            parse_report("")

    def test_no_cookie_columns(self):
        with pytest.raises(ValidationError):
            parse_report("Scout Name,Notes\nEmma Sisk,hello\n")

    def test_no_quantities(self):
        with pytest.raises(ValidationError):
            parse_report("Scout Name,Thin Mints\nEmma Sisk,0\n")

    @pytest.mark.parametrize("text,expected", [
        ("12", 12), (" 7 boxes", 7), ("", 0), (None, 0), ("n/a", 0),
    ])
    def test_parse_quantity(self, text, expected):
        assert parse_quantity(text) == expected

    def test_template_header(self):
        template = generate_template_csv()
        headers = template.strip().split(",")
        assert headers[0] == "Scout Name"
        assert len(headers) == 1 + len(ProductType)


class TestInventoryImporter:
    """Applying a parsed report to the ledger"""

    def setup_method(self):
        self.storage = storage = InMemoryStorage()
        self.directory = MemberDirectory(storage)
        self.audit_log = InventoryAuditLog(storage)
        self.ledger = InventoryLedger(storage, self.directory, self.audit_log)
        self.importer = InventoryImporter(self.directory, self.ledger)

        self.admin = self.directory.add_member("Courtney S", ScoutLevel.ORDER_CZAR, is_admin=True,
                                               username="courtneys", pin="pw")
        self.emma = self.directory.add_member("Emma Sisk", ScoutLevel.AMBASSADOR)
        self.anna = self.directory.add_member("Anna Rodriguez", ScoutLevel.JUNIOR)
        for member in (self.emma, self.anna):
            self.ledger.ensure_member_records(member.id)

    def test_match_scouts(self):
        matches = self.importer.match_scouts(["emma sisk", "ANNAR", "Courtney S", "Zed"])
        assert matches == {
            "emma sisk": self.emma.id,
            "ANNAR": self.anna.id,
            "Courtney S": None,
            "Zed": None,
        }

    def test_replace_mode_sets_starting(self):
        summary = self.importer.import_report(self.admin, REPORT, ImportMode.REPLACE)

        assert summary.applied == 3
        assert summary.matched == {"Emma Sisk": self.emma.id, "annar": self.anna.id}
        assert summary.unmatched == ["Zed Unknown"]
        assert summary.errors == ["Row 5: Could not identify scout name"]

        assert self.ledger.get_record(self.emma.id, "TMint").starting == 12
        assert self.ledger.get_record(self.emma.id, "Sam").starting == 6
        assert self.ledger.get_record(self.anna.id, "TMint").starting == 1024
        assert self.audit_log.count_entries() == 3

    def test_add_mode_sets_additional(self):
        self.ledger.set_field(self.admin, self.emma.id, "TMint", "additional", 5)
        self.importer.import_report(self.admin, "Scout Name,Thin Mints\nEmma Sisk,4\n", ImportMode.ADD)

        record = self.ledger.get_record(self.emma.id, "TMint")
        assert record.additional == 4
        assert record.starting == 0

    def test_import_may_leave_remaining_negative(self):
        self.ledger.set_field(self.admin, self.emma.id, "TMint", "starting", 10)
        self.ledger.record_sale(self.emma, self.emma.id, "TMint", 8)

        self.importer.import_report(self.admin, "Scout Name,Thin Mints\nEmma Sisk,5\n")

        assert self.ledger.get_remaining(self.emma.id, "TMint") == -3

    def test_requires_admin(self):
        with pytest.raises(UnauthorizedError):
            self.importer.import_report(self.emma, REPORT)
        assert self.audit_log.count_entries() == 0

    def test_failed_write_undoes_whole_import(self, monkeypatch):
        save = self.storage.save
        inventory_writes = []

        def flaky_save(table, record_id, data):
            if table == "inventory":
                inventory_writes.append(record_id)
                if len(inventory_writes) == 3:
                    raise IOError("disk full")
            save(table, record_id, data)

        monkeypatch.setattr(self.storage, "save", flaky_save)

        with pytest.raises(PersistenceError):
            self.importer.import_report(self.admin, REPORT, ImportMode.REPLACE)

        assert self.ledger.get_record(self.emma.id, "TMint").starting == 0
        assert self.ledger.get_record(self.emma.id, "Sam").starting == 0
        assert self.ledger.get_record(self.anna.id, "TMint").starting == 0
        assert self.audit_log.count_entries() == 0
