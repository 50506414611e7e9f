"""
Inventory ledger endpoints
"""

from fastapi import APIRouter, Depends

from .auth import (
    TroopSystem, get_troop_system, get_current_member, get_admin_member,
    require_self_or_admin, to_http_error
)
from .schemas import InventoryRecordModel, SaleRequest, SetFieldRequest, TransferRequest
from ..errors import TroopError
from ..members import Member
from ..products import ProductType


router = APIRouter()


@router.get("/products")
async def list_products():
    """Product catalogue with unit prices"""
    return {
        "products": [
            {"code": p.code, "label": p.label, "price": str(p.price)}
            for p in ProductType
        ]
    }


@router.get("/{member_id}")
async def get_member_inventory(
    member_id: str,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Every product record for one member"""
    require_self_or_admin(member, member_id)
    try:
        system.directory.resolve_member(member_id)
    except TroopError as e:
        raise to_http_error(e)

    records = system.ledger.get_member_inventory(member_id)
    return {
        "member_id": member_id,
        "records": [InventoryRecordModel.from_record(r).model_dump() for r in records.values()]
    }


@router.put("/{member_id}")
async def set_field(
    member_id: str,
    request: SetFieldRequest,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Admin edit of one counter"""
    try:
        record = system.ledger.set_field(
            admin, member_id, request.product_code, request.field, request.value,
            override=request.override
        )
    except TroopError as e:
        raise to_http_error(e)
    return InventoryRecordModel.from_record(record).model_dump()


@router.post("/{member_id}/sales")
async def record_sale(
    member_id: str,
    request: SaleRequest,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Record boxes sold"""
    try:
        record = system.ledger.record_sale(member, member_id, request.product_code, request.quantity)
    except TroopError as e:
        raise to_http_error(e)
    return InventoryRecordModel.from_record(record).model_dump()


@router.post("/transfers")
async def transfer(
    request: TransferRequest,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Admin transfer of boxes between members"""
    try:
        source, target = system.ledger.transfer(
            member, request.from_member_id, request.to_member_id,
            request.product_code, request.quantity
        )
    except TroopError as e:
        raise to_http_error(e)
    return {
        "from": InventoryRecordModel.from_record(source).model_dump(),
        "to": InventoryRecordModel.from_record(target).model_dump(),
    }
