from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel


class EventParticipant(SQLModel, table=True):
    """Event participant with confirmation status."""

    __tablename__ = "event_participants"

    event_id: UUID = Field(
        foreign_key="events.id", primary_key=True, nullable=False
    )
    user_id: UUID = Field(foreign_key="users.id", primary_key=True, nullable=False)
    has_confirmed: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
