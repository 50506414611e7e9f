"""
Chat and notification endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, status

from .auth import TroopSystem, get_troop_system, get_current_member, to_http_error
from .schemas import SendMessageRequest
from ..errors import TroopError
from ..members import Member


router = APIRouter()


def _message_response(message) -> dict:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "recipient_id": message.recipient_id,
        "content": message.content,
        "timestamp": message.created_at.isoformat(),
    }


@router.get("/messages")
async def list_messages(
    with_member: Optional[str] = None,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Troop chat plus the member's direct messages, or one conversation when with_member is given"""
    if with_member:
        messages = system.messages.conversation(member.id, with_member)
    else:
        messages = system.messages.visible_messages(member)
    return {"messages": [_message_response(m) for m in messages]}


@router.get("/messages/partners")
async def list_conversation_partners(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    return {"member_ids": system.messages.conversation_partners(member)}


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    request: SendMessageRequest,
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    try:
        message = system.messages.send_message(member, request.content, request.recipient_id)
    except TroopError as e:
        raise to_http_error(e)
    return _message_response(message)


@router.get("/notifications")
async def list_notifications(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    """Newest first, flagged read or unread for the current member"""
    notifications = system.notifications.list_notifications()
    return {
        "notifications": [
            {
                "id": n.id,
                "type": n.notification_type.value,
                "title": n.title,
                "message": n.message,
                "timestamp": n.created_at.isoformat(),
                "read": n.is_read_by(member.id),
            }
            for n in notifications
        ],
        "unread_count": sum(1 for n in notifications if not n.is_read_by(member.id)),
    }


@router.post("/notifications/read")
async def mark_notifications_read(
    member: Member = Depends(get_current_member),
    system: TroopSystem = Depends(get_troop_system)
):
    changed = system.notifications.mark_all_read(member.id)
    return {"marked_read": changed, "unread_count": system.notifications.unread_count(member.id)}
