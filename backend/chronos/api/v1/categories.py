from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import select

from chronos.api.deps import get_current_user
from chronos.core.exceptions import ConflictError
from chronos.db import SessionDep
from chronos.models import Event, EventCategory, User
from chronos.schemas import ApiResponse, CategoryCreate, CategoryRead, CategoryUpdate
from chronos.services.permissions import (
    CalendarAction,
    ensure_calendar_access,
    ensure_category_access,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/calendars/{calendar_id}/categories",
    response_model=ApiResponse[List[CategoryRead]],
    summary="List calendar categories",
)
def list_categories(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[CategoryRead]]:
    ensure_calendar_access(session, calendar_id, current_user)
    categories = session.exec(
        select(EventCategory)
        .where(EventCategory.calendar_id == calendar_id)
        .order_by(EventCategory.created_at)
    ).all()
    return ApiResponse(data=[CategoryRead.model_validate(c) for c in categories])


@router.post(
    "/calendars/{calendar_id}/categories",
    response_model=ApiResponse[CategoryRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
def create_category(
    calendar_id: UUID,
    payload: CategoryCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CategoryRead]:
    ensure_calendar_access(
        session, calendar_id, current_user, CalendarAction.MANAGE_CATEGORIES
    )
    category = EventCategory(calendar_id=calendar_id, **payload.model_dump())
    session.add(category)
    session.commit()
    session.refresh(category)
    return ApiResponse(data=CategoryRead.model_validate(category), message="Category created")


@router.get(
    "/categories/{category_id}",
    response_model=ApiResponse[CategoryRead],
    summary="Get category",
)
def get_category(
    category_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CategoryRead]:
    category = ensure_category_access(session, category_id, current_user)
    return ApiResponse(data=CategoryRead.model_validate(category))


@router.put(
    "/categories/{category_id}",
    response_model=ApiResponse[CategoryRead],
    summary="Update category",
)
def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CategoryRead]:
    category = ensure_category_access(
        session, category_id, current_user, CalendarAction.MANAGE_CATEGORIES
    )
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    category.touch()
    session.add(category)
    session.commit()
    session.refresh(category)
    return ApiResponse(data=CategoryRead.model_validate(category), message="Category updated")


@router.delete(
    "/categories/{category_id}",
    response_model=ApiResponse[None],
    summary="Delete category",
)
def delete_category(
    category_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    category = ensure_category_access(
        session, category_id, current_user, CalendarAction.MANAGE_CATEGORIES
    )
    in_use = session.exec(
        select(Event.id).where(Event.category_id == category.id).limit(1)
    ).first()
    if in_use:
        raise ConflictError("Cannot delete a category that still has events")

    session.delete(category)
    session.commit()
    logger.info("User %s deleted category %s", current_user.id, category_id)
    return ApiResponse(message="Category deleted")
