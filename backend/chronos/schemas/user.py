from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    full_name: Optional[str] = None
    region: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)


class UserUpdate(BaseModel):
    """Schema for partial profile updates."""

    full_name: Optional[str] = None
    region: Optional[str] = None


class UserLogin(BaseModel):
    # Username or email
    username: str
    password: str


class UserRead(UserBase):
    id: UUID
    is_active: bool
    is_email_verified: bool = False
    pending_email: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserPublicRead(BaseModel):
    id: UUID
    username: str
    full_name: Optional[str] = None
    region: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=128)


class ChangeEmailRequest(BaseModel):
    new_email: EmailStr
    password: str


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None
