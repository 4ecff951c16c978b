from __future__ import annotations

import secrets
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .calendar_participant import ParticipantRole


def generate_invite_token() -> str:
    return secrets.token_urlsafe(32)


class CalendarEmailInvite(SQLModel, table=True):
    """Single-use calendar invitation addressed to one email."""

    __tablename__ = "calendar_email_invites"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(foreign_key="calendars.id", nullable=False, index=True)
    email: str = Field(max_length=255, index=True)
    role: str = Field(default=ParticipantRole.READER.value, max_length=32)
    token: str = Field(
        default_factory=generate_invite_token, unique=True, index=True, max_length=64
    )
    invited_by_id: Optional[UUID] = Field(
        default=None, foreign_key="users.id", nullable=True
    )
    expires_at: Optional[datetime] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.utcnow())
