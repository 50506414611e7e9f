"""
Session and roster endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .auth import (
    TroopSystem, get_troop_system, get_current_member, get_admin_member,
    issue_token, to_http_error
)
from .schemas import BannerRequest, CreateMemberRequest, LoginRequest, MemberModel
from ..errors import TroopError, UnauthorizedError
from ..members import Member, ScoutLevel


router = APIRouter()


@router.post("/login")
async def login(
    request: LoginRequest,
    system: TroopSystem = Depends(get_troop_system)
):
    """Authenticate with username and PIN and return a bearer token"""
    try:
        member = system.directory.authenticate(request.username, request.pin)
    except UnauthorizedError as e:
        raise HTTPException(status_code=401, detail=str(e))

    return {
        "access_token": issue_token(member),
        "token_type": "bearer",
        "member": MemberModel.from_member(member).model_dump(),
    }


@router.post("/logout")
async def logout(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    system.directory.logout(member.id)
    return {"message": "Logged out"}


@router.get("/me")
async def get_me(member: Member = Depends(get_current_member)):
    return MemberModel.from_member(member).model_dump()


@router.put("/me/banner")
async def set_banner(
    request: BannerRequest,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Change the dashboard banner colour"""
    try:
        updated = system.directory.set_banner_color(member.id, request.color)
    except TroopError as e:
        raise to_http_error(e)
    return MemberModel.from_member(updated).model_dump()


@router.get("")
async def list_members(
    include_admins: bool = True,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Roster; the administrator also sees each scout's PIN"""
    result = []
    for m in system.directory.list_members(include_admins=include_admins):
        entry = MemberModel.from_member(m).model_dump()
        if member.is_admin and not m.is_admin:
            entry["pin"] = m.pin
        result.append(entry)
    return {"members": result}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_member(
    request: CreateMemberRequest,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Add a scout; the response carries the generated username and PIN"""
    try:
        level = ScoutLevel(request.level)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown scout level: {request.level}")
    if level == ScoutLevel.ORDER_CZAR:
        raise HTTPException(status_code=400, detail="OrderCzar is reserved for the administrator")

    try:
        member = system.create_member(admin, request.name, level)
    except TroopError as e:
        raise to_http_error(e)

    result = MemberModel.from_member(member).model_dump()
    result["pin"] = member.pin
    return result


@router.get("/{member_id}")
async def get_member(
    member_id: str,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    found = system.directory.get_member(member_id)
    if not found:
        raise HTTPException(status_code=404, detail="Member not found")
    return MemberModel.from_member(found).model_dump()


@router.delete("/{member_id}")
async def remove_member(
    member_id: str,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Remove a member and their inventory records"""
    try:
        removed = system.remove_member(admin, member_id)
    except TroopError as e:
        raise to_http_error(e)
    return {"member_id": removed.id, "message": "Member removed"}
