from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .calendar_email_invite import generate_invite_token


class EventEmailInvite(SQLModel, table=True):
    """Single-use event invitation addressed to one email."""

    __tablename__ = "event_email_invites"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    event_id: UUID = Field(foreign_key="events.id", nullable=False, index=True)
    email: str = Field(max_length=255, index=True)
    # Filled when the email already belongs to a registered user
    user_id: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True)
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
