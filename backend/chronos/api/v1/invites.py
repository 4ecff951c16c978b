from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session

from chronos.api.deps import get_current_user
from chronos.db import SessionDep
from chronos.models import Calendar, User
from chronos.schemas import (
    ApiResponse,
    CalendarInviteInfo,
    CalendarReadWithRole,
    InviteAccept,
)
from chronos.services import redemption
from chronos.services.permissions import get_user_calendar_role

router = APIRouter()


def _joined_calendar(
    session: Session, calendar: Calendar, user: User
) -> CalendarReadWithRole:
    role = get_user_calendar_role(session, calendar, user.id)
    return CalendarReadWithRole.model_validate(calendar).model_copy(
        update={"current_user_role": role}
    )


@router.get(
    "/calendar-invites/{link_id}",
    response_model=ApiResponse[CalendarInviteInfo],
    summary="Describe an invite link before accepting it",
)
def get_invite_link_info(
    link_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarInviteInfo]:
    return ApiResponse(data=redemption.get_invite_link_info(session, link_id))


@router.post(
    "/calendar-invites/{link_id}/accept",
    response_model=ApiResponse[CalendarReadWithRole],
    summary="Join a calendar through an invite link",
)
def accept_invite_link(
    link_id: UUID,
    session: SessionDep,
    payload: InviteAccept | None = None,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarReadWithRole]:
    calendar = redemption.accept_invite_link(
        session,
        link_id,
        current_user,
        role=payload.role if payload else None,
    )
    return ApiResponse(
        data=_joined_calendar(session, calendar, current_user),
        message="Invite accepted",
    )


@router.get(
    "/calendar-email-invites/{token}",
    response_model=ApiResponse[CalendarInviteInfo],
    summary="Describe a calendar email invite",
)
def get_calendar_email_invite_info(
    token: str,
    session: SessionDep,
) -> ApiResponse[CalendarInviteInfo]:
    return ApiResponse(data=redemption.get_calendar_email_invite_info(session, token))


@router.post(
    "/calendar-email-invites/{token}/accept",
    response_model=ApiResponse[CalendarReadWithRole],
    summary="Accept a calendar email invite",
)
def accept_calendar_email_invite(
    token: str,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarReadWithRole]:
    calendar = redemption.accept_calendar_email_invite(session, token, current_user)
    return ApiResponse(
        data=_joined_calendar(session, calendar, current_user),
        message="Invite accepted",
    )
