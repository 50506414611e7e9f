"""
Bulk Inventory Import Module

Reads council inventory reports exported as CSV: one row per scout, one
column per cookie. Column headers are matched to products by alias, scouts
by name or username. Matched quantities are written through the admin
override path of the ledger, into ``starting`` (replace mode) or
``additional`` (add mode).
"""

import csv
import io
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .errors import ValidationError
from .ledger import InventoryField, InventoryLedger
from .logging_config import get_logger, log_action
from .members import Member, MemberDirectory, require_admin
from .products import ProductType, match_product_header


NAME_COLUMNS = ['name', 'scout', 'scout name', 'girl', 'girl name', 'first name', 'username']


class ImportMode(Enum):
    """Which counter imported quantities are written to"""
    REPLACE = "replace"   # starting
    ADD = "add"           # additional

    @property
    def target_field(self) -> InventoryField:
        return InventoryField.STARTING if self is ImportMode.REPLACE else InventoryField.ADDITIONAL


@dataclass
class ImportEntry:
    """One scout/product quantity read from a report"""
    scout_name: str
    product: ProductType
    quantity: int


@dataclass
class ParsedReport:
    entries: List[ImportEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def scout_names(self) -> List[str]:
        seen: List[str] = []
        for entry in self.entries:
            if entry.scout_name not in seen:
                seen.append(entry.scout_name)
        return seen


@dataclass
class ImportSummary:
    mode: ImportMode
    applied: int = 0
    matched: Dict[str, str] = field(default_factory=dict)   # scout name -> member id
    unmatched: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def parse_quantity(value: Optional[str]) -> int:
    """Digits only; anything unparseable counts as zero"""
    digits = re.sub(r"[^0-9]", "", value or "")
    return int(digits) if digits else 0


def _scout_name(row: Dict[str, str], headers: List[str]) -> Optional[str]:
    for column in NAME_COLUMNS:
        for header in headers:
            if header.strip().lower() == column:
                value = (row.get(header) or "").strip()
                if value:
                    return value
    if headers:
        value = (row.get(headers[0]) or "").strip()
        if value:
            return value
    return None


def parse_report(text: str) -> ParsedReport:
    """
    Parse CSV report text into import entries

    Raises:
        ValidationError: no header row, no product columns, or no quantities
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    headers = [h for h in (reader.fieldnames or []) if h is not None]
    if not headers:
        raise ValidationError("The uploaded file appears to be empty")

    columns = {header: match_product_header(header) for header in headers}
    columns = {header: product for header, product in columns.items() if product is not None}
    if not columns:
        raise ValidationError("No cookie columns found in the report header")

    report = ParsedReport()
    for index, row in enumerate(reader):
        name = _scout_name(row, headers)
        if not name:
            # +2: header row, and rows are 1-based in a spreadsheet
            report.errors.append(f"Row {index + 2}: Could not identify scout name")
            continue
        for header, product in columns.items():
            quantity = parse_quantity(row.get(header))
            if quantity > 0:
                report.entries.append(ImportEntry(name, product, quantity))

    if not report.entries:
        raise ValidationError("No valid cookie data found in file")
    return report


def generate_template_csv() -> str:
    """Header-only CSV that downloads as an import template"""
    return ",".join(["Scout Name"] + [p.label for p in ProductType]) + "\n"


class InventoryImporter:
    """Applies parsed reports to the ledger"""

    def __init__(self, directory: MemberDirectory, ledger: InventoryLedger):
        self.directory = directory
        self.ledger = ledger
        self.logger = get_logger("troop.imports")

    def match_scouts(self, names: List[str]) -> Dict[str, Optional[str]]:
        """Scout name -> member id (None when no member matches name or username)"""
        members = self.directory.list_members(include_admins=False)
        result: Dict[str, Optional[str]] = {}
        for name in names:
            key = name.lower()
            match = next((m for m in members if m.name.lower() == key or m.username.lower() == key), None)
            result[name] = match.id if match else None
        return result

    def import_report(self, actor: Member, text: str, mode: ImportMode = ImportMode.REPLACE) -> ImportSummary:
        """
        Parse a CSV report and write every matched quantity

        Unmatched scouts are reported and skipped. Matched rows are applied
        in one ledger transaction.
        """
        require_admin(actor)
        report = parse_report(text)
        matches = self.match_scouts(report.scout_names)

        summary = ImportSummary(mode=mode, errors=list(report.errors))
        summary.matched = {name: member_id for name, member_id in matches.items() if member_id}
        summary.unmatched = [name for name, member_id in matches.items() if not member_id]

        # all or nothing: a failed write undoes the rows already applied
        with self.ledger.transaction():
            for entry in report.entries:
                member_id = summary.matched.get(entry.scout_name)
                if not member_id:
                    continue
                self.ledger.set_field(actor, member_id, entry.product, mode.target_field,
                                      entry.quantity, override=True)
                summary.applied += 1

        log_action(
            self.logger, "info", f"Inventory import applied {summary.applied} entries",
            user_id=actor.id, action="import_inventory", resource="inventory",
            extra={"mode": mode.value, "matched": len(summary.matched),
                   "unmatched": summary.unmatched, "row_errors": len(summary.errors)}
        )
        return summary
