from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .calendar_participant import ParticipantRole


class CalendarInviteLink(SQLModel, table=True):
    """Reusable invite link; the id is the shareable token."""

    __tablename__ = "calendar_invite_links"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(foreign_key="calendars.id", nullable=False, index=True)
    role: str = Field(default=ParticipantRole.READER.value, max_length=32)
    created_by_id: Optional[UUID] = Field(
        default=None, foreign_key="users.id", nullable=True
    )
    # None means the link never expires
    expires_at: Optional[datetime] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.utcnow())
