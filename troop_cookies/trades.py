"""
Trade Management Module

Peer-to-peer box trades between two members. A trade is proposed, then
accepted or rejected by the named counterparty. Acceptance re-checks both
parties' stock and settles every leg in one ledger transaction, so a trade
never partially executes.

States: pending -> accepted | rejected. Both outcomes are terminal.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import NotFoundError, UnauthorizedError, ValidationError
from .events import DomainEvent, EventDispatcher
from .ledger import InventoryLedger, to_product
from .logging_config import get_logger, log_action
from .members import Member, MemberDirectory
from .products import ProductType
from .storage import StorageInterface, StorageRecord


class TradeStatus(Enum):
    """Trade lifecycle states"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class TradeRequest(StorageRecord):
    """Proposed exchange: the proposer gives offering and receives requesting"""
    from_member_id: str
    from_member_name: str
    to_member_id: str
    to_member_name: str
    offering: Dict[str, int] = field(default_factory=dict)
    requesting: Dict[str, int] = field(default_factory=dict)
    status: TradeStatus = TradeStatus.PENDING
    resolved_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == TradeStatus.PENDING

    def offering_products(self) -> Dict[ProductType, int]:
        return {ProductType.from_code(code): qty for code, qty in self.offering.items()}

    def requesting_products(self) -> Dict[ProductType, int]:
        return {ProductType.from_code(code): qty for code, qty in self.requesting.items()}


QuantityMap = Mapping[Union[ProductType, str], int]


def _normalize_quantities(quantities: Optional[QuantityMap], side: str) -> Dict[str, int]:
    """Product code -> positive quantity; zero and missing entries are dropped"""
    result: Dict[str, int] = {}
    for product, qty in (quantities or {}).items():
        product = to_product(product)
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise ValidationError(f"{side} quantity for {product.code} must be an integer")
        if qty < 0:
            raise ValidationError(f"{side} quantity for {product.code} cannot be negative")
        if qty > 0:
            result[product.code] = qty
    return result


class TradeManager:
    """Trade proposals and responses backed by the 'trades' table"""

    def __init__(
        self,
        storage: StorageInterface,
        directory: MemberDirectory,
        ledger: InventoryLedger,
        event_dispatcher: Optional[EventDispatcher] = None
    ):
        self.storage = storage
        self.directory = directory
        self.ledger = ledger
        self.table_name = "trades"
        self.logger = get_logger("troop.trades")
        self._event_dispatcher = event_dispatcher

    def _publish_event(self, event_type: DomainEvent, trade: TradeRequest) -> None:
        if self._event_dispatcher:
            self._event_dispatcher.emit(event_type, "trade", trade.id, self._trade_to_dict(trade))

    def propose(
        self,
        proposer: Member,
        to_member_id: str,
        offering: Optional[QuantityMap] = None,
        requesting: Optional[QuantityMap] = None
    ) -> TradeRequest:
        """
        Create a pending trade

        Holdings are not checked here; they may change before the counterparty
        responds and are re-checked on acceptance.

        Raises:
            ValidationError: trade with oneself, or no positive quantity on either side
            NotFoundError: counterparty does not exist
        """
        if proposer.id == to_member_id:
            raise ValidationError("Cannot propose a trade to yourself")

        offered = _normalize_quantities(offering, "Offering")
        requested = _normalize_quantities(requesting, "Requesting")
        if not offered and not requested:
            raise ValidationError("A trade must include at least one box")

        counterparty = self.directory.resolve_member(to_member_id)

        now = datetime.now(timezone.utc)
        trade = TradeRequest(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            from_member_id=proposer.id,
            from_member_name=proposer.name,
            to_member_id=counterparty.id,
            to_member_name=counterparty.name,
            offering=offered,
            requesting=requested,
        )
        self._save_trade(trade)

        log_action(
            self.logger, "info", f"Trade proposed: {proposer.name} -> {counterparty.name}",
            user_id=proposer.id, action="propose_trade", resource=f"trade:{trade.id}",
            extra={"offering": offered, "requesting": requested}
        )
        self._publish_event(DomainEvent.TRADE_PROPOSED, trade)
        return trade

    def respond(self, actor: Member, trade_id: str, accept: bool) -> TradeRequest:
        """
        Accept or reject a trade as its counterparty

        Rejecting a trade that is no longer pending is a no-op. Accepting one
        that is no longer pending returns it unchanged.

        Raises:
            NotFoundError: unknown trade id
            UnauthorizedError: actor is not the named counterparty
            InsufficientStockError: either party lacks stock for a leg; nothing changes
        """
        trade = self.get_trade(trade_id)
        if trade is None:
            raise NotFoundError("trade", trade_id)
        if actor.id != trade.to_member_id:
            raise UnauthorizedError("Only the trade's counterparty may respond to it")

        if not accept:
            return self._reject(actor, trade)

        with self.ledger.transaction():
            # Re-read inside the lock so two concurrent acceptances settle once
            trade = self.get_trade(trade_id)
            if not trade.is_pending:
                return trade

            proposer = self.directory.resolve_member(trade.from_member_id)
            counterparty = self.directory.resolve_member(trade.to_member_id)
            self.ledger.settle_exchange(
                proposer, counterparty,
                trade.offering_products(), trade.requesting_products(),
                actor_id=actor.id
            )

            now = datetime.now(timezone.utc)
            trade.status = TradeStatus.ACCEPTED
            trade.resolved_at = now
            trade.updated_at = now
            self._save_trade(trade)

        log_action(
            self.logger, "info", f"Trade accepted: {trade.from_member_name} <-> {trade.to_member_name}",
            user_id=actor.id, action="accept_trade", resource=f"trade:{trade.id}",
            extra={"offering": trade.offering, "requesting": trade.requesting}
        )
        self._publish_event(DomainEvent.TRADE_ACCEPTED, trade)
        return trade

    def _reject(self, actor: Member, trade: TradeRequest) -> TradeRequest:
        with self.ledger.transaction():
            trade = self.get_trade(trade.id)
            if not trade.is_pending:
                return trade
            now = datetime.now(timezone.utc)
            trade.status = TradeStatus.REJECTED
            trade.resolved_at = now
            trade.updated_at = now
            self._save_trade(trade)

        log_action(
            self.logger, "info", "Trade rejected",
            user_id=actor.id, action="reject_trade", resource=f"trade:{trade.id}"
        )
        self._publish_event(DomainEvent.TRADE_REJECTED, trade)
        return trade

    def get_trade(self, trade_id: str) -> Optional[TradeRequest]:
        data = self.storage.load(self.table_name, trade_id)
        if data:
            return self._trade_from_dict(data)
        return None

    def list_trades(self) -> List[TradeRequest]:
        trades = [self._trade_from_dict(data) for data in self.storage.load_all(self.table_name)]
        return sorted(trades, key=lambda t: t.created_at, reverse=True)

    def list_trades_for_member(self, member_id: str) -> List[TradeRequest]:
        """Trades the member proposed or received, newest first"""
        return [t for t in self.list_trades()
                if t.from_member_id == member_id or t.to_member_id == member_id]

    def pending_for_member(self, member_id: str) -> List[TradeRequest]:
        """Pending trades awaiting this member's response"""
        return [t for t in self.list_trades() if t.to_member_id == member_id and t.is_pending]

    def clear(self) -> None:
        self.storage.clear_table(self.table_name)

    def _save_trade(self, trade: TradeRequest) -> None:
        self.storage.save(self.table_name, trade.id, self._trade_to_dict(trade))

    def _trade_to_dict(self, trade: TradeRequest) -> Dict[str, Any]:
        result = trade.to_dict()
        result['resolved_at'] = trade.resolved_at.isoformat() if trade.resolved_at else None
        return result

    def _trade_from_dict(self, data: Dict[str, Any]) -> TradeRequest:
        data = dict(data)
        data['status'] = TradeStatus(data['status'])
        if data.get('resolved_at'):
            data['resolved_at'] = datetime.fromisoformat(data['resolved_at'])
        return TradeRequest.from_dict(data)
