from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from chronos.api.deps import get_current_user
from chronos.core.exceptions import NotFoundError
from chronos.db import SessionDep
from chronos.models import User
from chronos.schemas import ApiResponse, UserPublicRead, UserRead, UserUpdate

router = APIRouter()


@router.get(
    "/profile",
    response_model=ApiResponse[UserRead],
    summary="Get current user profile",
)
def get_profile(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserRead]:
    return ApiResponse(data=UserRead.model_validate(current_user))


@router.put(
    "/profile",
    response_model=ApiResponse[UserRead],
    summary="Update current user profile",
)
def update_profile(
    payload: UserUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserRead]:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    current_user.touch()
    session.add(current_user)
    session.commit()
    session.refresh(current_user)
    return ApiResponse(data=UserRead.model_validate(current_user), message="Profile updated")


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserPublicRead],
    summary="Get public profile of a user",
)
def get_user(
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublicRead]:
    user = session.get(User, user_id)
    if not user or not user.is_active:
        raise NotFoundError("User not found")
    return ApiResponse(data=UserPublicRead.model_validate(user))
