from __future__ import annotations

from typing import Generic, Literal, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope shared by every endpoint."""

    status: Literal["success", "error"] = "success"
    data: Optional[DataT] = None
    message: Optional[str] = None


class PublicUserSummary(BaseModel):
    """User fields safe to show without authentication."""

    id: UUID
    username: str
    full_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserSummary(PublicUserSummary):
    email: str
