"""
Inventory Ledger Module

Per-member, per-product box counts. Each record holds three counters
(starting, additional, sold) and derives remaining from them. Every write
runs read-validate-write-log inside one storage transaction under a
ledger-wide lock, and appends one audit entry per field changed.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .audit import InventoryAuditLog
from .errors import (
    InsufficientStockError, OverSellError, PersistenceError, TroopError,
    UnauthorizedError, ValidationError
)
from .events import DomainEvent, EventDispatcher
from .logging_config import get_logger, log_action
from .members import Member, MemberDirectory, require_admin
from .products import ProductType
from .storage import StorageInterface, StorageRecord


ProductRef = Union[ProductType, str]


class InventoryField(Enum):
    """Counters held on every inventory record"""
    STARTING = "starting"
    ADDITIONAL = "additional"
    SOLD = "sold"


@dataclass
class InventoryRecord(StorageRecord):
    """Box counts for one (member, product)"""
    member_id: str
    product_code: str
    starting: int = 0
    additional: int = 0
    sold: int = 0

    @property
    def remaining(self) -> int:
        return self.starting + self.additional - self.sold

    @staticmethod
    def record_id(member_id: str, product_code: str) -> str:
        return f"{member_id}:{product_code}"

    @classmethod
    def empty(cls, member_id: str, product_code: str) -> 'InventoryRecord':
        now = datetime.now(timezone.utc)
        return cls(
            id=cls.record_id(member_id, product_code),
            created_at=now,
            updated_at=now,
            member_id=member_id,
            product_code=product_code,
        )


def to_product(product: ProductRef) -> ProductType:
    if isinstance(product, ProductType):
        return product
    return ProductType.from_code(product)


def to_field(field: Union[InventoryField, str]) -> InventoryField:
    if isinstance(field, InventoryField):
        return field
    try:
        return InventoryField(field)
    except ValueError:
        raise ValidationError(f"Unknown inventory field: {field}")


def _require_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    return value


def _require_positive(quantity, name: str = "Quantity") -> int:
    quantity = _require_int(quantity, name)
    if quantity <= 0:
        raise ValidationError(f"{name} must be positive")
    return quantity


class InventoryLedger:
    """
    Inventory ledger over the 'inventory' table

    Invariant: remaining >= 0 for every record after every operation except
    the explicit admin override of set_field.
    """

    def __init__(
        self,
        storage: StorageInterface,
        directory: MemberDirectory,
        audit_log: InventoryAuditLog,
        event_dispatcher: Optional[EventDispatcher] = None
    ):
        self.storage = storage
        self.directory = directory
        self.audit_log = audit_log
        self.table_name = "inventory"
        self.logger = get_logger("troop.ledger")
        self._event_dispatcher = event_dispatcher
        self._lock = threading.RLock()

    # Reads

    def get_record(self, member_id: str, product: ProductRef) -> InventoryRecord:
        """Stored record, or an all-zero record if none exists yet"""
        product = to_product(product)
        data = self.storage.load(self.table_name, InventoryRecord.record_id(member_id, product.code))
        if data:
            return InventoryRecord.from_dict(data)
        return InventoryRecord.empty(member_id, product.code)

    def get_remaining(self, member_id: str, product: ProductRef) -> int:
        return self.get_record(member_id, product).remaining

    def get_member_inventory(self, member_id: str) -> Dict[ProductType, InventoryRecord]:
        """All products for one member, in catalogue order"""
        return {product: self.get_record(member_id, product) for product in ProductType}

    def all_records(self) -> List[InventoryRecord]:
        return [InventoryRecord.from_dict(data) for data in self.storage.load_all(self.table_name)]

    # Record lifecycle

    def ensure_member_records(self, member_id: str,
                              starting: Optional[Mapping[ProductType, int]] = None) -> None:
        """Create missing records for every product; existing records are left alone"""
        starting = starting or {}
        for product in ProductType:
            record_id = InventoryRecord.record_id(member_id, product.code)
            if self.storage.exists(self.table_name, record_id):
                continue
            record = InventoryRecord.empty(member_id, product.code)
            record.starting = starting.get(product, 0)
            self.storage.save(self.table_name, record.id, record.to_dict())

    def delete_member_records(self, member_id: str) -> int:
        deleted = 0
        for data in self.storage.find(self.table_name, {'member_id': member_id}):
            if self.storage.delete(self.table_name, data['id']):
                deleted += 1
        return deleted

    def clear(self) -> None:
        self.storage.clear_table(self.table_name)

    # Writes

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        One atomic unit of ledger work under the ledger lock.
        Backend failures roll back and surface as PersistenceError.
        """
        with self._lock:
            try:
                with self.storage.atomic():
                    yield
            except TroopError:
                raise
            except Exception as e:
                self.logger.error(f"Inventory write failed and was rolled back: {e}")
                raise PersistenceError("Inventory write failed", cause=e) from e

    def _write_field(
        self,
        record: InventoryRecord,
        field: InventoryField,
        new_value: int,
        member_name: str,
        changed_by: str,
        actor_id: Optional[str]
    ) -> Tuple[int, int]:
        old_value = getattr(record, field.value)
        setattr(record, field.value, new_value)
        record.updated_at = datetime.now(timezone.utc)
        self.storage.save(self.table_name, record.id, record.to_dict())
        self.audit_log.record_change(
            member_id=record.member_id,
            member_name=member_name,
            product_code=record.product_code,
            field=field.value,
            old_value=old_value,
            new_value=new_value,
            changed_by=changed_by,
            actor_id=actor_id
        )
        return old_value, new_value

    def _publish_change(self, record: InventoryRecord, field: InventoryField,
                        old_value: int, new_value: int, reason: str) -> None:
        if self._event_dispatcher:
            self._event_dispatcher.emit(
                DomainEvent.INVENTORY_CHANGED, "inventory", record.id,
                {
                    'member_id': record.member_id,
                    'product_code': record.product_code,
                    'field': field.value,
                    'old_value': old_value,
                    'new_value': new_value,
                    'remaining': record.remaining,
                    'reason': reason,
                }
            )

    def set_field(
        self,
        actor: Member,
        member_id: str,
        product: ProductRef,
        field: Union[InventoryField, str],
        value: int,
        override: bool = False
    ) -> InventoryRecord:
        """
        Overwrite one counter directly. Admin only; members change their
        stock through record_sale and trades.

        Args:
            actor: Admin making the change
            member_id: Member whose record changes
            product: Product type or code
            field: starting, additional or sold
            value: New value
            override: Correction path; skips the remaining >= 0 check

        Returns:
            Updated InventoryRecord

        Raises:
            UnauthorizedError: actor is not an admin
            InsufficientStockError: remaining would go negative (non-override)
        """
        require_admin(actor)
        product = to_product(product)
        field = to_field(field)
        value = _require_int(value, "Value")

        member = self.directory.resolve_member(member_id)

        with self.transaction():
            record = self.get_record(member_id, product)

            if not override:
                if field != InventoryField.ADDITIONAL and value < 0:
                    raise ValidationError(f"{field.value} cannot be negative")
                counts = {f.value: getattr(record, f.value) for f in InventoryField}
                counts[field.value] = value
                before = record.remaining
                after = counts['starting'] + counts['additional'] - counts['sold']
                if after < 0:
                    raise InsufficientStockError(member_id, product.code, before - after, before)

            old_value, new_value = self._write_field(
                record, field, value, member.name, actor.name, actor.id
            )

        log_action(
            self.logger, "info", f"Inventory {field.value} set for {member.name}",
            user_id=actor.id, action="set_field", resource=f"inventory:{record.id}",
            extra={
                "product": product.code, "field": field.value,
                "old_value": old_value, "new_value": new_value, "override": override
            }
        )
        self._publish_change(record, field, old_value, new_value, "override" if override else "edit")
        return record

    def record_sale(self, actor: Member, member_id: str, product: ProductRef, quantity: int) -> InventoryRecord:
        """
        Add quantity to sold

        Raises:
            OverSellError: quantity exceeds remaining; nothing is written
        """
        product = to_product(product)
        quantity = _require_positive(quantity)

        if not actor.is_admin and actor.id != member_id:
            raise UnauthorizedError("Members may only record their own sales")

        member = self.directory.resolve_member(member_id)

        with self.transaction():
            record = self.get_record(member_id, product)
            if quantity > record.remaining:
                raise OverSellError(member_id, product.code, quantity, record.remaining)
            old_value, new_value = self._write_field(
                record, InventoryField.SOLD, record.sold + quantity, member.name, actor.name, actor.id
            )

        log_action(
            self.logger, "info", f"Sale recorded for {member.name}",
            user_id=actor.id, action="record_sale", resource=f"inventory:{record.id}",
            extra={"product": product.code, "quantity": quantity, "sold": new_value,
                   "remaining": record.remaining}
        )
        self._publish_change(record, InventoryField.SOLD, old_value, new_value, "sale")
        return record

    def transfer(
        self,
        actor: Member,
        from_member_id: str,
        to_member_id: str,
        product: ProductRef,
        quantity: int
    ) -> Tuple[InventoryRecord, InventoryRecord]:
        """
        Admin move of boxes between members through the additional counter

        Raises:
            InsufficientStockError: quantity exceeds the sender's remaining
        """
        require_admin(actor)
        product = to_product(product)
        quantity = _require_positive(quantity)
        if from_member_id == to_member_id:
            raise ValidationError("Cannot transfer boxes to the same member")

        sender = self.directory.resolve_member(from_member_id)
        receiver = self.directory.resolve_member(to_member_id)

        with self.transaction():
            source = self.get_record(sender.id, product)
            target = self.get_record(receiver.id, product)
            if quantity > source.remaining:
                raise InsufficientStockError(sender.id, product.code, quantity, source.remaining)

            source_change = self._write_field(
                source, InventoryField.ADDITIONAL, source.additional - quantity,
                sender.name, f"Transfer to {receiver.name}", actor.id
            )
            target_change = self._write_field(
                target, InventoryField.ADDITIONAL, target.additional + quantity,
                receiver.name, f"Transfer from {sender.name}", actor.id
            )

        log_action(
            self.logger, "info", f"Transferred {quantity} {product.code} from {sender.name} to {receiver.name}",
            user_id=actor.id, action="transfer", resource=f"inventory:{product.code}",
            extra={"from_member": sender.id, "to_member": receiver.id, "quantity": quantity}
        )
        self._publish_change(source, InventoryField.ADDITIONAL, *source_change, "transfer")
        self._publish_change(target, InventoryField.ADDITIONAL, *target_change, "transfer")
        return source, target

    def settle_exchange(
        self,
        proposer: Member,
        counterparty: Member,
        offering: Mapping[ProductType, int],
        requesting: Mapping[ProductType, int],
        actor_id: Optional[str] = None
    ) -> List[InventoryRecord]:
        """
        Validate and apply a two-party exchange as a single unit

        The proposer gives ``offering`` and receives ``requesting``. Every leg
        is checked against current stock before anything is written; any
        shortfall raises InsufficientStockError and nothing changes. Callers
        that need to save more state in the same commit wrap this in
        ``transaction()``.
        """
        offering = {p: q for p, q in offering.items() if q and q > 0}
        requesting = {p: q for p, q in requesting.items() if q and q > 0}

        with self.transaction():
            for product, qty in offering.items():
                remaining = self.get_remaining(proposer.id, product)
                if remaining < qty:
                    raise InsufficientStockError(proposer.id, product.code, qty, remaining)
            for product, qty in requesting.items():
                remaining = self.get_remaining(counterparty.id, product)
                if remaining < qty:
                    raise InsufficientStockError(counterparty.id, product.code, qty, remaining)

            # Net movement per (member, product) so each record gets one audit entry
            deltas: Dict[Tuple[str, ProductType], int] = {}
            for product, qty in offering.items():
                deltas[(proposer.id, product)] = deltas.get((proposer.id, product), 0) - qty
                deltas[(counterparty.id, product)] = deltas.get((counterparty.id, product), 0) + qty
            for product, qty in requesting.items():
                deltas[(counterparty.id, product)] = deltas.get((counterparty.id, product), 0) - qty
                deltas[(proposer.id, product)] = deltas.get((proposer.id, product), 0) + qty

            names = {proposer.id: proposer.name, counterparty.id: counterparty.name}
            partner = {proposer.id: counterparty.name, counterparty.id: proposer.name}
            changes = []
            for (member_id, product), delta in deltas.items():
                if delta == 0:
                    continue
                record = self.get_record(member_id, product)
                old_value, new_value = self._write_field(
                    record, InventoryField.ADDITIONAL, record.additional + delta,
                    names[member_id], f"Trade with {partner[member_id]}", actor_id
                )
                changes.append((record, old_value, new_value))

        for record, old_value, new_value in changes:
            self._publish_change(record, InventoryField.ADDITIONAL, old_value, new_value, "trade")
        return [record for record, _, _ in changes]
