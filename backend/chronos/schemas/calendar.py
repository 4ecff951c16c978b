from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from chronos.models import ParticipantRole

from .category import HEX_COLOR, CategoryRead
from .common import UserSummary


class CalendarCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    color: str = Field(default="#2563eb", pattern=HEX_COLOR)
    is_holiday: bool = False


class CalendarUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class VisibilityUpdate(BaseModel):
    is_visible: bool


class CalendarRead(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    color: str
    is_main: bool
    is_holiday: bool
    is_visible: bool
    owner_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarReadWithRole(CalendarRead):
    current_user_role: Optional[str] = None


class ParticipantRead(BaseModel):
    calendar_id: UUID
    user_id: UUID
    username: str
    email: str
    full_name: Optional[str] = None
    role: ParticipantRole
    created_at: datetime


class ParticipantRoleUpdate(BaseModel):
    role: ParticipantRole


class CalendarDetail(CalendarReadWithRole):
    owner: UserSummary
    participants: list[ParticipantRead] = []
    categories: list[CategoryRead] = []
