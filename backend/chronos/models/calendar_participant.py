from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlmodel import Field, SQLModel


class ParticipantRole(str, Enum):
    ADMIN = "admin"  # calendar settings, participants, invites, events
    CREATOR = "creator"  # events and categories only
    READER = "reader"


class CalendarParticipant(SQLModel, table=True):
    """Calendar membership with per-user role; one row per (calendar, user)."""

    __tablename__ = "calendar_participants"

    calendar_id: UUID = Field(
        foreign_key="calendars.id", primary_key=True, nullable=False
    )
    user_id: UUID = Field(
        foreign_key="users.id", primary_key=True, nullable=False, index=True
    )
    role: str = Field(default=ParticipantRole.READER.value, max_length=32)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
