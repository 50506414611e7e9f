"""
Inventory Audit Log Module

Append-only, hash-chained record of every inventory field change. Each entry
captures the member, product, field, old and new value and who made the
change. Entries are never edited; only a full system reset clears the log.
"""

import hashlib
import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .storage import StorageInterface, StorageRecord


@dataclass
class InventoryLogEntry(StorageRecord):
    """
    Immutable audit entry for one (member, product, field) change
    """
    sequence: int
    member_id: str
    member_name: str
    product_code: str
    field: str
    old_value: int
    new_value: int
    changed_by: str       # Human readable, e.g. "Courtney S" or "Transfer to Emma S"
    previous_hash: str
    current_hash: str
    actor_id: Optional[str] = None

    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this entry
        Hash includes all fields except current_hash to prevent circular reference
        """
        hash_data = {
            'id': self.id,
            'sequence': self.sequence,
            'created_at': self.created_at.isoformat(),
            'member_id': self.member_id,
            'member_name': self.member_name,
            'product_code': self.product_code,
            'field': self.field,
            'old_value': self.old_value,
            'new_value': self.new_value,
            'changed_by': self.changed_by,
            'actor_id': self.actor_id,
            'previous_hash': self.previous_hash,
        }

        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()


class InventoryAuditLog:
    """
    Hash-chained inventory audit log
    """

    def __init__(self, storage: StorageInterface, table_name: str = "inventory_log"):
        self.storage = storage
        self.table_name = table_name
        self._lock = threading.Lock()
        # (entry id, sequence, hash) of the last entry this log appended
        self._last: Optional[Tuple[str, int, str]] = None

    def _load_entries(self) -> List[InventoryLogEntry]:
        entries = [InventoryLogEntry.from_dict(data) for data in self.storage.load_all(self.table_name)]
        entries.sort(key=lambda e: e.sequence)
        return entries

    def _tail(self) -> Optional[Tuple[int, str]]:
        """
        Sequence and hash of the most recent entry

        The cached tail is trusted only while its entry is still stored and the
        table holds exactly that many entries; a rollback, a reset or another
        writer forces a rescan.
        """
        if self._last is not None:
            entry_id, sequence, current_hash = self._last
            if (self.storage.count(self.table_name) == sequence
                    and self.storage.load(self.table_name, entry_id) is not None):
                return sequence, current_hash

        entries = self._load_entries()
        if not entries:
            self._last = None
            return None
        tail = entries[-1]
        self._last = (tail.id, tail.sequence, tail.current_hash)
        return tail.sequence, tail.current_hash

    def record_change(
        self,
        member_id: str,
        member_name: str,
        product_code: str,
        field: str,
        old_value: int,
        new_value: int,
        changed_by: str,
        actor_id: Optional[str] = None
    ) -> InventoryLogEntry:
        """
        Append one entry to the log

        Args:
            member_id: Member whose record changed
            member_name: Display name at the time of the change
            product_code: Product code of the record
            field: starting, additional or sold
            old_value: Value before the change
            new_value: Value after the change
            changed_by: Human readable description of who made the change
            actor_id: Member id of the acting identity, if any

        Returns:
            Created InventoryLogEntry
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            tail = self._tail()

            entry = InventoryLogEntry(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                sequence=(tail[0] + 1) if tail else 1,
                member_id=member_id,
                member_name=member_name,
                product_code=product_code,
                field=field,
                old_value=old_value,
                new_value=new_value,
                changed_by=changed_by,
                actor_id=actor_id,
                previous_hash=tail[1] if tail else "",
                current_hash=""
            )
            entry.current_hash = entry.calculate_hash()

            self.storage.save(self.table_name, entry.id, entry.to_dict())
            self._last = (entry.id, entry.sequence, entry.current_hash)
            return entry

    def list_entries(
        self,
        member_id: Optional[str] = None,
        product_code: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[InventoryLogEntry]:
        """
        Entries most recent first, optionally filtered and capped to the latest N
        """
        entries = self._load_entries()
        if member_id:
            entries = [e for e in entries if e.member_id == member_id]
        if product_code:
            entries = [e for e in entries if e.product_code == product_code]

        entries.reverse()
        if limit:
            entries = entries[:limit]
        return entries

    def get_entry(self, entry_id: str) -> Optional[InventoryLogEntry]:
        """Get a specific entry by ID"""
        data = self.storage.load(self.table_name, entry_id)
        if data:
            return InventoryLogEntry.from_dict(data)
        return None

    def count_entries(self) -> int:
        """Total number of entries"""
        return self.storage.count(self.table_name)

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire chain

        Returns:
            Dictionary with integrity check results
        """
        result = {
            'valid': True,
            'total_entries': 0,
            'hash_errors': [],
            'chain_breaks': [],
        }

        entries = self._load_entries()
        result['total_entries'] = len(entries)

        previous_hash = ""
        for position, entry in enumerate(entries):
            if not entry.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'entry_id': entry.id,
                    'position': position,
                    'expected_hash': entry.calculate_hash(),
                    'actual_hash': entry.current_hash
                })
            if entry.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'entry_id': entry.id,
                    'position': position,
                    'expected_previous_hash': previous_hash,
                    'actual_previous_hash': entry.previous_hash
                })
            previous_hash = entry.current_hash

        return result

    def clear(self) -> None:
        """Drop every entry. Only used by a full system reset."""
        with self._lock:
            self.storage.clear_table(self.table_name)
            self._last = None
