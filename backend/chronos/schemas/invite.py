from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from chronos.models import ParticipantRole

from .common import PublicUserSummary


class InviteLinkCreate(BaseModel):
    expire_in_days: Optional[int] = Field(default=None, ge=1)
    role: ParticipantRole = ParticipantRole.READER


class InviteLinkRead(BaseModel):
    id: UUID
    calendar_id: UUID
    role: ParticipantRole
    expires_at: Optional[datetime] = None
    created_at: datetime
    invite_url: str


class InviteAccept(BaseModel):
    role: Optional[ParticipantRole] = None


class CalendarInviteInfo(BaseModel):
    """What a prospective participant sees before accepting."""

    calendar_id: UUID
    calendar_name: str
    calendar_description: Optional[str] = None
    calendar_color: str
    role: ParticipantRole
    owner: PublicUserSummary
    expires_at: Optional[datetime] = None


class CalendarEmailInviteCreate(BaseModel):
    emails: List[EmailStr] = Field(min_length=1)
    role: ParticipantRole = ParticipantRole.READER
    expire_in_days: Optional[int] = Field(default=None, ge=1)


class CalendarEmailInviteRead(BaseModel):
    id: UUID
    calendar_id: UUID
    email: str
    role: ParticipantRole
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventEmailInviteCreate(BaseModel):
    emails: List[EmailStr] = Field(min_length=1)
    expire_in_days: Optional[int] = Field(default=None, ge=1)


class EventEmailInviteRead(BaseModel):
    id: UUID
    event_id: UUID
    email: str
    user_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventInviteInfo(BaseModel):
    event_id: UUID
    event_title: str
    starts_at: datetime
    ends_at: datetime
    calendar_id: UUID
    calendar_name: str
    email: str
    inviter: Optional[PublicUserSummary] = None
    expires_at: Optional[datetime] = None
