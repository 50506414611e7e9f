"""
Pydantic schemas for API requests and responses
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


# Session schemas
class LoginRequest(BaseModel):
    username: str
    pin: str = Field(..., description="4-digit PIN, or the admin password")


class BannerRequest(BaseModel):
    color: str = Field(..., description="Banner colour as #RRGGBB")


# Member schemas
class CreateMemberRequest(BaseModel):
    name: str
    level: str = Field(..., description="Daisy, Brownie, Junior, Cadette, Senior or Ambassador")


class MemberModel(BaseModel):
    id: str
    username: str
    name: str
    level: str
    is_admin: bool
    is_online: bool
    banner_color: Optional[str] = None

    @classmethod
    def from_member(cls, member) -> 'MemberModel':
        return cls(
            id=member.id,
            username=member.username,
            name=member.name,
            level=member.level.value,
            is_admin=member.is_admin,
            is_online=member.is_online,
            banner_color=member.banner_color,
        )


# Inventory schemas
class InventoryRecordModel(BaseModel):
    member_id: str
    product_code: str
    starting: int
    additional: int
    sold: int
    remaining: int

    @classmethod
    def from_record(cls, record) -> 'InventoryRecordModel':
        return cls(
            member_id=record.member_id,
            product_code=record.product_code,
            starting=record.starting,
            additional=record.additional,
            sold=record.sold,
            remaining=record.remaining,
        )


class SetFieldRequest(BaseModel):
    product_code: str
    field: str = Field(..., description="starting, additional or sold")
    value: int
    override: bool = Field(False, description="Admin correction; skips the remaining >= 0 check")


class SaleRequest(BaseModel):
    product_code: str
    quantity: int = Field(..., gt=0)


class TransferRequest(BaseModel):
    from_member_id: str
    to_member_id: str
    product_code: str
    quantity: int = Field(..., gt=0)


# Trade schemas
class ProposeTradeRequest(BaseModel):
    to_member_id: str
    offering: Dict[str, int] = Field(default_factory=dict, description="Product code -> boxes the proposer gives")
    requesting: Dict[str, int] = Field(default_factory=dict, description="Product code -> boxes the proposer wants")


class RespondTradeRequest(BaseModel):
    accept: bool


# Schedule schemas
class CreateBoothRequest(BaseModel):
    business: str
    location: str = ""
    date: str = Field(..., description="YYYY-MM-DD")
    start_time: str
    end_time: str = ""
    duration: str = ""
    notes: str = ""


class CreateMeetingRequest(BaseModel):
    title: str
    date: str = Field(..., description="YYYY-MM-DD")
    start_time: str
    end_time: str = ""
    location: str = ""
    description: str = ""


# Messaging schemas
class SendMessageRequest(BaseModel):
    content: str
    recipient_id: Optional[str] = Field(None, description="Member id for a direct message; omit for troop chat")


# Import schemas
class ImportRequest(BaseModel):
    csv_text: str
    mode: str = Field("replace", description="replace (starting) or add (additional)")


class ImportResponse(BaseModel):
    mode: str
    applied: int
    matched: Dict[str, str]
    unmatched: List[str]
    errors: List[str]
