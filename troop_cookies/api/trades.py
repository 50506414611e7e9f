"""
Trade endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .auth import TroopSystem, get_troop_system, get_current_member, to_http_error
from .schemas import ProposeTradeRequest, RespondTradeRequest
from ..errors import TroopError
from ..members import Member
from ..trades import TradeRequest


router = APIRouter()


def _trade_response(trade: TradeRequest) -> dict:
    return {
        "id": trade.id,
        "from_member_id": trade.from_member_id,
        "from_member_name": trade.from_member_name,
        "to_member_id": trade.to_member_id,
        "to_member_name": trade.to_member_name,
        "offering": trade.offering,
        "requesting": trade.requesting,
        "status": trade.status.value,
        "created_at": trade.created_at.isoformat(),
        "resolved_at": trade.resolved_at.isoformat() if trade.resolved_at else None,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def propose_trade(
    request: ProposeTradeRequest,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Propose a trade to another member"""
    try:
        trade = system.trades.propose(member, request.to_member_id, request.offering, request.requesting)
    except TroopError as e:
        raise to_http_error(e)
    return _trade_response(trade)


@router.get("")
async def list_my_trades(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Trades the current member proposed or received"""
    trades = system.trades.list_trades_for_member(member.id)
    return {"trades": [_trade_response(t) for t in trades]}


@router.get("/pending")
async def list_pending_trades(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Trades waiting for the current member's answer"""
    trades = system.trades.pending_for_member(member.id)
    return {"trades": [_trade_response(t) for t in trades]}


@router.get("/{trade_id}")
async def get_trade(
    trade_id: str,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    trade = system.trades.get_trade(trade_id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    if not member.is_admin and member.id not in (trade.from_member_id, trade.to_member_id):
        raise HTTPException(status_code=403, detail="Not a party to this trade")
    return _trade_response(trade)


@router.post("/{trade_id}/respond")
async def respond_to_trade(
    trade_id: str,
    request: RespondTradeRequest,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Accept or reject a trade as its counterparty"""
    try:
        trade = system.trades.respond(member, trade_id, request.accept)
    except TroopError as e:
        raise to_http_error(e)
    return _trade_response(trade)
