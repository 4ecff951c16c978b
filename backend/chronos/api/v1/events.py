from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session, select

from chronos.api.deps import get_current_user
from chronos.core.exceptions import ConflictError, NotAuthorizedError, NotFoundError
from chronos.db import SessionDep
from chronos.models import Calendar, Event, EventCategory, EventParticipant, User
from chronos.schemas import (
    ApiResponse,
    EventCreate,
    EventEmailInviteCreate,
    EventEmailInviteRead,
    EventInviteInfo,
    EventParticipantRead,
    EventRead,
    EventUpdate,
    ParticipationUpdate,
)
from chronos.schemas.event import to_naive_utc
from chronos.services import invitations, redemption
from chronos.services.events import (
    attach_participants,
    delete_event as delete_event_cascade,
    load_event_participants,
    serialize_event,
    sync_participants,
)
from chronos.services.permissions import (
    CalendarAction,
    ensure_calendar_access,
    ensure_event_access,
    get_user_calendar_role,
    is_allowed,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_category_in_calendar(
    session: Session, category_id: UUID, calendar_id: UUID
) -> EventCategory:
    category = session.get(EventCategory, category_id)
    if not category or category.calendar_id != calendar_id:
        raise ConflictError("Category does not belong to this calendar")
    return category


@router.get(
    "/calendars/{calendar_id}/events",
    response_model=ApiResponse[List[EventRead]],
    summary="List calendar events",
)
def list_events(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    start_date: Optional[datetime] = Query(
        default=None, description="Only events ending at or after this time"
    ),
    end_date: Optional[datetime] = Query(
        default=None, description="Only events starting at or before this time"
    ),
) -> ApiResponse[List[EventRead]]:
    ensure_calendar_access(session, calendar_id, current_user)

    start_date = to_naive_utc(start_date)
    end_date = to_naive_utc(end_date)
    statement = select(Event).where(Event.calendar_id == calendar_id)
    if start_date is not None:
        statement = statement.where(Event.ends_at >= start_date)
    if end_date is not None:
        statement = statement.where(Event.starts_at <= end_date)
    events = session.exec(statement.order_by(Event.starts_at)).all()
    return ApiResponse(data=[serialize_event(session, event) for event in events])


@router.post(
    "/calendars/{calendar_id}/events",
    response_model=ApiResponse[EventRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
def create_event(
    calendar_id: UUID,
    payload: EventCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    ensure_calendar_access(
        session, calendar_id, current_user, CalendarAction.MANAGE_EVENTS
    )
    _ensure_category_in_calendar(session, payload.category_id, calendar_id)

    event = Event(
        **payload.model_dump(exclude={"participant_ids"}),
        calendar_id=calendar_id,
        creator_id=current_user.id,
    )
    session.add(event)
    session.flush()
    if payload.participant_ids:
        attach_participants(session, event.id, payload.participant_ids)
    session.commit()
    session.refresh(event)
    logger.info("User %s created event %s in calendar %s", current_user.id, event.id, calendar_id)
    return ApiResponse(data=serialize_event(session, event), message="Event created")


# Email invite routes are declared before the /events/{event_id} routes


@router.delete(
    "/events/email-invites/{invite_id}",
    response_model=ApiResponse[None],
    summary="Revoke event email invite",
)
def delete_event_email_invite(
    invite_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    invitations.delete_event_email_invite(session, invite_id, current_user)
    return ApiResponse(message="Email invite revoked")


@router.get(
    "/events/email-invite/{token}/info",
    response_model=ApiResponse[EventInviteInfo],
    summary="Describe an event email invite",
)
def get_event_email_invite_info(
    token: str,
    session: SessionDep,
) -> ApiResponse[EventInviteInfo]:
    return ApiResponse(data=redemption.get_event_email_invite_info(session, token))


@router.post(
    "/events/email-invite/{token}/accept",
    response_model=ApiResponse[EventRead],
    summary="Accept an event email invite",
)
def accept_event_email_invite(
    token: str,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    event = redemption.accept_event_email_invite(session, token, current_user)
    return ApiResponse(data=serialize_event(session, event), message="Invite accepted")


@router.get(
    "/events/{event_id}",
    response_model=ApiResponse[EventRead],
    summary="Get event by id",
)
def get_event(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    event = ensure_event_access(session, event_id, current_user)
    return ApiResponse(data=serialize_event(session, event))


@router.put(
    "/events/{event_id}",
    response_model=ApiResponse[EventRead],
    summary="Update event",
)
def update_event(
    event_id: UUID,
    payload: EventUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    event = ensure_event_access(
        session, event_id, current_user, CalendarAction.MANAGE_EVENTS
    )
    data = payload.model_dump(exclude_unset=True)
    participant_ids = data.pop("participant_ids", None)

    if data.get("category_id") is not None:
        _ensure_category_in_calendar(session, data["category_id"], event.calendar_id)
    for field, value in data.items():
        if value is not None or field == "description":
            setattr(event, field, value)
    if event.ends_at < event.starts_at:
        raise ConflictError("ends_at must be greater than or equal to starts_at")

    if participant_ids is not None:
        sync_participants(session, event.id, participant_ids)
    event.touch()
    session.add(event)
    session.commit()
    session.refresh(event)
    return ApiResponse(data=serialize_event(session, event), message="Event updated")


@router.delete(
    "/events/{event_id}",
    response_model=ApiResponse[None],
    summary="Delete event",
)
def delete_event(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    event = ensure_event_access(
        session, event_id, current_user, CalendarAction.MANAGE_EVENTS
    )
    delete_event_cascade(session, event)
    session.commit()
    logger.info("User %s deleted event %s", current_user.id, event_id)
    return ApiResponse(message="Event deleted")


@router.get(
    "/events/{event_id}/participants",
    response_model=ApiResponse[List[EventParticipantRead]],
    summary="List event participants",
)
def list_event_participants(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[EventParticipantRead]]:
    event = ensure_event_access(session, event_id, current_user)
    return ApiResponse(data=load_event_participants(session, event.id))


@router.delete(
    "/events/{event_id}/participants/{user_id}",
    response_model=ApiResponse[None],
    summary="Remove event participant",
)
def remove_event_participant(
    event_id: UUID,
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    event = ensure_event_access(session, event_id, current_user)
    if user_id != current_user.id:
        calendar = session.get(Calendar, event.calendar_id)
        role = get_user_calendar_role(session, calendar, current_user.id)
        if not is_allowed(role, CalendarAction.MANAGE_EVENTS):
            raise NotAuthorizedError("Not authorized to manage events in this calendar")

    participant = session.get(EventParticipant, (event.id, user_id))
    if not participant:
        raise NotFoundError("Participant not found")
    session.delete(participant)
    session.commit()
    return ApiResponse(message="Participant removed")


@router.put(
    "/events/{event_id}/participation",
    response_model=ApiResponse[EventParticipantRead],
    summary="Confirm or decline participation",
)
def update_participation(
    event_id: UUID,
    payload: ParticipationUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventParticipantRead]:
    participant = session.get(EventParticipant, (event_id, current_user.id))
    if not participant:
        ensure_event_access(session, event_id, current_user)
        raise NotFoundError("You are not a participant of this event")

    participant.has_confirmed = payload.has_confirmed
    session.add(participant)
    session.commit()
    return ApiResponse(
        data=EventParticipantRead(
            user_id=current_user.id,
            username=current_user.username,
            email=current_user.email,
            full_name=current_user.full_name,
            has_confirmed=participant.has_confirmed,
        )
    )


@router.post(
    "/events/{event_id}/email-invites",
    response_model=ApiResponse[List[EventEmailInviteRead]],
    status_code=status.HTTP_201_CREATED,
    summary="Invite people to the event by email",
)
def create_event_email_invites(
    event_id: UUID,
    payload: EventEmailInviteCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[EventEmailInviteRead]]:
    invites = invitations.create_event_email_invites(
        session,
        event_id,
        current_user,
        payload.emails,
        expire_in_days=payload.expire_in_days,
    )
    return ApiResponse(
        data=[EventEmailInviteRead.model_validate(invite) for invite in invites],
        message=f"{len(invites)} invitation(s) sent",
    )


@router.get(
    "/events/{event_id}/email-invites",
    response_model=ApiResponse[List[EventEmailInviteRead]],
    summary="List pending event email invites",
)
def list_event_email_invites(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[EventEmailInviteRead]]:
    invites = invitations.list_event_email_invites(session, event_id, current_user)
    return ApiResponse(
        data=[EventEmailInviteRead.model_validate(invite) for invite in invites]
    )
