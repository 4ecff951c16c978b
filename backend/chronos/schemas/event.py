from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .category import HEX_COLOR


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Event times are stored naive in UTC; offset-aware input is converted."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    category_id: UUID
    description: Optional[str] = None
    color: str = Field(default="#000000", pattern=HEX_COLOR)
    starts_at: datetime
    ends_at: datetime

    @field_validator("starts_at")
    @classmethod
    def normalize_starts_at(cls, starts_at: datetime) -> datetime:
        return to_naive_utc(starts_at)

    @field_validator("ends_at")
    @classmethod
    def check_ends_after_start(
        cls, ends_at: datetime, info: ValidationInfo
    ) -> datetime:
        ends_at = to_naive_utc(ends_at)
        starts_at: datetime | None = info.data.get("starts_at")
        if starts_at and ends_at < starts_at:
            raise ValueError("ends_at must be greater than or equal to starts_at")
        return ends_at


class EventCreate(EventBase):
    participant_ids: Optional[List[UUID]] = None


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category_id: Optional[UUID] = None
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_completed: Optional[bool] = None
    participant_ids: Optional[List[UUID]] = None

    @field_validator("starts_at")
    @classmethod
    def normalize_starts_at(cls, starts_at: datetime | None) -> datetime | None:
        return to_naive_utc(starts_at)

    @field_validator("ends_at")
    @classmethod
    def check_ends_after_start(
        cls, ends_at: datetime | None, info: ValidationInfo
    ) -> datetime | None:
        ends_at = to_naive_utc(ends_at)
        starts_at: datetime | None = info.data.get("starts_at")
        if starts_at and ends_at and ends_at < starts_at:
            raise ValueError("ends_at must be greater than or equal to starts_at")
        return ends_at


class EventParticipantRead(BaseModel):
    user_id: UUID
    username: str
    email: str
    full_name: Optional[str] = None
    has_confirmed: bool


class EventRead(BaseModel):
    id: UUID
    calendar_id: UUID
    category_id: UUID
    creator_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    color: str
    starts_at: datetime
    ends_at: datetime
    is_completed: bool
    created_at: datetime
    updated_at: datetime
    participants: List[EventParticipantRead] = []

    model_config = ConfigDict(from_attributes=True)


class ParticipationUpdate(BaseModel):
    has_confirmed: bool
