from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Calendar(SQLModel, table=True):
    """Calendar owned by one user and shared with participants."""

    __tablename__ = "calendars"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=500)
    color: str = Field(default="#2563eb", max_length=16)
    # Every user has exactly one main calendar, created at registration
    is_main: bool = Field(default=False, nullable=False)
    is_holiday: bool = Field(default=False, nullable=False)
    is_visible: bool = Field(default=True, nullable=False)
    owner_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
