"""
Booth and meeting endpoints
"""

from fastapi import APIRouter, Depends, status

from .auth import TroopSystem, get_troop_system, get_current_member, get_admin_member, to_http_error
from .schemas import CreateBoothRequest, CreateMeetingRequest
from ..errors import TroopError
from ..members import Member


router = APIRouter()


def _booth_response(booth) -> dict:
    return {
        "id": booth.id,
        "business": booth.business,
        "location": booth.location,
        "notes": booth.notes,
        "date": booth.date,
        "start_time": booth.start_time,
        "end_time": booth.end_time,
        "duration": booth.duration,
    }


def _meeting_response(meeting) -> dict:
    return {
        "id": meeting.id,
        "title": meeting.title,
        "description": meeting.description,
        "date": meeting.date,
        "start_time": meeting.start_time,
        "end_time": meeting.end_time,
        "location": meeting.location,
    }


@router.get("/booths")
async def list_booths(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    return {"booths": [_booth_response(b) for b in system.schedule.list_booths()]}


@router.post("/booths", status_code=status.HTTP_201_CREATED)
async def add_booth(
    request: CreateBoothRequest,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    try:
        booth = system.schedule.add_booth(
            admin, request.business, request.location, request.date,
            request.start_time, request.end_time,
            duration=request.duration, notes=request.notes
        )
    except TroopError as e:
        raise to_http_error(e)
    return _booth_response(booth)


@router.delete("/booths/{booth_id}")
async def remove_booth(
    booth_id: str,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    try:
        system.schedule.remove_booth(admin, booth_id)
    except TroopError as e:
        raise to_http_error(e)
    return {"booth_id": booth_id, "message": "Booth removed"}


@router.get("/meetings")
async def list_meetings(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    return {"meetings": [_meeting_response(m) for m in system.schedule.list_meetings()]}


@router.post("/meetings", status_code=status.HTTP_201_CREATED)
async def add_meeting(
    request: CreateMeetingRequest,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Schedule a meeting; every member gets a notification"""
    try:
        meeting = system.schedule.add_meeting(
            admin, request.title, request.date, request.start_time,
            end_time=request.end_time, location=request.location,
            description=request.description
        )
    except TroopError as e:
        raise to_http_error(e)
    return _meeting_response(meeting)


@router.delete("/meetings/{meeting_id}")
async def remove_meeting(
    meeting_id: str,
    admin: Member = Depends(get_admin_member),
    system: TroopSystem = Depends(get_troop_system)
):
    try:
        meeting = system.schedule.remove_meeting(admin, meeting_id)
    except TroopError as e:
        raise to_http_error(e)
    return {"meeting_id": meeting.id, "message": "Meeting cancelled"}
