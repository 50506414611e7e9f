"""
Administrative endpoints: reports, bulk import and system reset
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import PlainTextResponse

from .auth import (
    TroopSystem, get_troop_system, get_current_member, get_admin_member,
    require_self_or_admin, to_http_error
)
from .schemas import ImportRequest, ImportResponse
from ..errors import TroopError
from ..imports import ImportMode, generate_template_csv
from ..members import Member


router = APIRouter()


@router.get("/reports/summary")
async def troop_summary(
    member_id: Optional[str] = None,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Troop dashboard figures, or one member's when member_id is given"""
    if member_id:
        require_self_or_admin(member, member_id)
    elif not member.is_admin:
        raise HTTPException(status_code=403, detail="The troop summary requires the troop administrator")
    try:
        if member_id:
            summary = system.reporter.member_summary(member_id)
        else:
            summary = system.reporter.troop_summary()
    except TroopError as e:
        raise to_http_error(e)
    return summary.to_dict()


@router.get("/reports/leaderboard")
async def leaderboard(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    return {"members": system.reporter.member_leaderboard()}


@router.get("/reports/summary.csv", response_class=PlainTextResponse)
async def troop_summary_csv(
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    return system.reporter.export_csv(system.reporter.troop_summary())


@router.get("/import/template", response_class=PlainTextResponse)
async def import_template(admin: Member = Depends(get_admin_member)):
    return generate_template_csv()


@router.post("/import", response_model=ImportResponse)
async def import_inventory(
    request: ImportRequest,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Apply a council inventory report (CSV text)"""
    try:
        mode = ImportMode(request.mode)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown import mode: {request.mode}")

    try:
        summary = system.importer.import_report(admin, request.csv_text, mode)
    except TroopError as e:
        raise to_http_error(e)

    return ImportResponse(
        mode=summary.mode.value,
        applied=summary.applied,
        matched=summary.matched,
        unmatched=summary.unmatched,
        errors=summary.errors,
    )


@router.post("/reset")
async def reset_system(
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Delete all troop data, audit log included, and restore the seed data"""
    try:
        system.reset(admin)
    except TroopError as e:
        raise to_http_error(e)
    return {"message": "System reset to seed data"}
