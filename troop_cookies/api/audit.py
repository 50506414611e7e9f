"""
Inventory audit log endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends

from .auth import TroopSystem, get_troop_system, get_admin_member
from ..config import get_config
from ..members import Member


router = APIRouter()


@router.get("")
async def list_audit_entries(
    member_id: Optional[str] = None,
    product_code: Optional[str] = None,
    limit: Optional[int] = None,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Most recent inventory changes first, capped at the configured display limit"""
    cap = get_config().audit_display_limit
    limit = min(limit, cap) if limit else cap
    entries = system.audit_log.list_entries(member_id=member_id, product_code=product_code, limit=limit)
    return {
        "entries": [
            {
                "id": e.id,
                "sequence": e.sequence,
                "member_id": e.member_id,
                "member_name": e.member_name,
                "product_code": e.product_code,
                "field": e.field,
                "old_value": e.old_value,
                "new_value": e.new_value,
                "changed_by": e.changed_by,
                "timestamp": e.created_at.isoformat(),
            }
            for e in entries
        ],
        "total": system.audit_log.count_entries(),
    }


@router.get("/verify")
async def verify_audit_log(
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Check the audit log hash chain"""
    return system.audit_log.verify_integrity()
