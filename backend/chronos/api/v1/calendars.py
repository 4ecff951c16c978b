from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import select

from chronos.api.deps import get_current_user
from chronos.db import SessionDep
from chronos.models import Calendar, EventCategory, User
from chronos.schemas import (
    ApiResponse,
    CalendarCreate,
    CalendarDetail,
    CalendarEmailInviteCreate,
    CalendarEmailInviteRead,
    CalendarReadWithRole,
    CalendarUpdate,
    CategoryRead,
    InviteLinkCreate,
    InviteLinkRead,
    ParticipantRead,
    ParticipantRoleUpdate,
    UserSummary,
    VisibilityUpdate,
)
from chronos.services import calendars as calendar_service
from chronos.services import invitations
from chronos.services import participants as participant_service
from chronos.services.permissions import (
    OWNER_ROLE,
    ensure_calendar_access,
    get_user_calendar_role,
)

router = APIRouter()


def _serialize_calendar_with_role(
    calendar: Calendar,
    *,
    role: str | None,
) -> CalendarReadWithRole:
    base = CalendarReadWithRole.model_validate(calendar)
    return base.model_copy(update={"current_user_role": role})


@router.get(
    "",
    response_model=ApiResponse[List[CalendarReadWithRole]],
    summary="List calendars",
)
def list_calendars(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[CalendarReadWithRole]]:
    return ApiResponse(
        data=[
            _serialize_calendar_with_role(calendar, role=role)
            for calendar, role in calendar_service.list_user_calendars(
                session, current_user
            )
        ]
    )


@router.post(
    "",
    response_model=ApiResponse[CalendarReadWithRole],
    status_code=status.HTTP_201_CREATED,
    summary="Create calendar",
)
def create_calendar(
    payload: CalendarCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarReadWithRole]:
    calendar = calendar_service.create_calendar(session, current_user, payload)
    session.commit()
    session.refresh(calendar)
    return ApiResponse(
        data=_serialize_calendar_with_role(calendar, role=OWNER_ROLE),
        message="Calendar created",
    )


@router.get(
    "/{calendar_id}",
    response_model=ApiResponse[CalendarDetail],
    summary="Get calendar with owner, participants and categories",
)
def get_calendar(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarDetail]:
    calendar = ensure_calendar_access(session, calendar_id, current_user)
    role = get_user_calendar_role(session, calendar, current_user.id)
    owner = session.get(User, calendar.owner_id)
    categories = session.exec(
        select(EventCategory)
        .where(EventCategory.calendar_id == calendar.id)
        .order_by(EventCategory.created_at)
    ).all()

    detail = CalendarDetail(
        **_serialize_calendar_with_role(calendar, role=role).model_dump(),
        owner=UserSummary.model_validate(owner),
        participants=participant_service.list_participants(
            session, calendar.id, current_user
        ),
        categories=[CategoryRead.model_validate(category) for category in categories],
    )
    return ApiResponse(data=detail)


@router.put(
    "/{calendar_id}",
    response_model=ApiResponse[CalendarReadWithRole],
    summary="Update calendar",
)
def update_calendar(
    calendar_id: UUID,
    payload: CalendarUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarReadWithRole]:
    calendar = calendar_service.update_calendar(
        session, calendar_id, current_user, payload
    )
    session.commit()
    session.refresh(calendar)
    role = get_user_calendar_role(session, calendar, current_user.id)
    return ApiResponse(
        data=_serialize_calendar_with_role(calendar, role=role),
        message="Calendar updated",
    )


@router.put(
    "/{calendar_id}/visibility",
    response_model=ApiResponse[CalendarReadWithRole],
    summary="Show or hide calendar",
)
def update_visibility(
    calendar_id: UUID,
    payload: VisibilityUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CalendarReadWithRole]:
    calendar = calendar_service.set_calendar_visibility(
        session, calendar_id, current_user, payload.is_visible
    )
    session.commit()
    session.refresh(calendar)
    role = get_user_calendar_role(session, calendar, current_user.id)
    return ApiResponse(data=_serialize_calendar_with_role(calendar, role=role))


@router.delete(
    "/{calendar_id}",
    response_model=ApiResponse[None],
    summary="Delete calendar",
)
def delete_calendar(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    calendar_service.delete_calendar(session, calendar_id, current_user)
    session.commit()
    return ApiResponse(message="Calendar deleted")


# Participants


@router.get(
    "/{calendar_id}/participants",
    response_model=ApiResponse[List[ParticipantRead]],
    summary="List calendar participants",
)
def list_participants(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[ParticipantRead]]:
    return ApiResponse(
        data=participant_service.list_participants(session, calendar_id, current_user)
    )


@router.put(
    "/{calendar_id}/participants/{user_id}/role",
    response_model=ApiResponse[ParticipantRead],
    summary="Change participant role",
)
def update_participant_role(
    calendar_id: UUID,
    user_id: UUID,
    payload: ParticipantRoleUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[ParticipantRead]:
    participant = participant_service.update_participant_role(
        session, calendar_id, user_id, payload.role, current_user
    )
    return ApiResponse(data=participant, message="Participant role updated")


@router.delete(
    "/{calendar_id}/participants/{user_id}",
    response_model=ApiResponse[None],
    summary="Remove participant",
)
def remove_participant(
    calendar_id: UUID,
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    participant_service.remove_participant(session, calendar_id, user_id, current_user)
    return ApiResponse(message="Participant removed")


@router.delete(
    "/{calendar_id}/leave",
    response_model=ApiResponse[None],
    summary="Leave a shared calendar",
)
def leave_calendar(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    participant_service.leave_calendar(session, calendar_id, current_user)
    return ApiResponse(message="You have left the calendar")


# Invite links


@router.post(
    "/{calendar_id}/invite-links",
    response_model=ApiResponse[InviteLinkRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a shareable invite link",
)
def create_invite_link(
    calendar_id: UUID,
    session: SessionDep,
    payload: InviteLinkCreate | None = None,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[InviteLinkRead]:
    payload = payload or InviteLinkCreate()
    link = invitations.create_invite_link(
        session,
        calendar_id,
        current_user,
        expire_in_days=payload.expire_in_days,
        role=payload.role,
    )
    return ApiResponse(
        data=invitations.serialize_invite_link(link), message="Invite link created"
    )


@router.get(
    "/{calendar_id}/invite-links",
    response_model=ApiResponse[List[InviteLinkRead]],
    summary="List invite links",
)
def list_invite_links(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[InviteLinkRead]]:
    links = invitations.list_invite_links(session, calendar_id, current_user)
    return ApiResponse(data=[invitations.serialize_invite_link(link) for link in links])


@router.delete(
    "/{calendar_id}/invite-links/{link_id}",
    response_model=ApiResponse[None],
    summary="Revoke invite link",
)
def delete_invite_link(
    calendar_id: UUID,
    link_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    invitations.delete_invite_link(session, calendar_id, link_id, current_user)
    return ApiResponse(message="Invite link deleted")


# Email invites


@router.post(
    "/{calendar_id}/email-invites",
    response_model=ApiResponse[List[CalendarEmailInviteRead]],
    status_code=status.HTTP_201_CREATED,
    summary="Invite people to the calendar by email",
)
def create_email_invites(
    calendar_id: UUID,
    payload: CalendarEmailInviteCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[CalendarEmailInviteRead]]:
    invites = invitations.create_calendar_email_invites(
        session,
        calendar_id,
        current_user,
        payload.emails,
        role=payload.role,
        expire_in_days=payload.expire_in_days,
    )
    return ApiResponse(
        data=[CalendarEmailInviteRead.model_validate(invite) for invite in invites],
        message=f"{len(invites)} invitation(s) sent",
    )


@router.get(
    "/{calendar_id}/email-invites",
    response_model=ApiResponse[List[CalendarEmailInviteRead]],
    summary="List pending email invites",
)
def list_email_invites(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[CalendarEmailInviteRead]]:
    invites = invitations.list_calendar_email_invites(session, calendar_id, current_user)
    return ApiResponse(
        data=[CalendarEmailInviteRead.model_validate(invite) for invite in invites]
    )


@router.delete(
    "/{calendar_id}/email-invites/{invite_id}",
    response_model=ApiResponse[None],
    summary="Revoke email invite",
)
def delete_email_invite(
    calendar_id: UUID,
    invite_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    invitations.delete_calendar_email_invite(
        session, calendar_id, invite_id, current_user
    )
    return ApiResponse(message="Email invite revoked")
