from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Calendar user record."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    username: str = Field(index=True, unique=True, max_length=30)
    email: str = Field(index=True, unique=True, max_length=255)
    full_name: Optional[str] = Field(default=None, max_length=255)
    region: Optional[str] = Field(default=None, max_length=64)
    hashed_password: str = Field(max_length=255)
    is_active: bool = Field(default=True)

    is_email_verified: bool = Field(default=False)
    email_verification_token: Optional[str] = Field(
        default=None, index=True, max_length=64
    )
    email_verification_expires_at: Optional[datetime] = None
    # Requested new address, applied once the mailed token is confirmed
    pending_email: Optional[str] = Field(default=None, max_length=255)
    email_change_token: Optional[str] = Field(default=None, index=True, max_length=64)
    email_change_expires_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
