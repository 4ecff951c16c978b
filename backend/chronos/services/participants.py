from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select as sql_select
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from chronos.core.exceptions import ConflictError, NotFoundError
from chronos.models import Calendar, CalendarParticipant, ParticipantRole, User
from chronos.schemas import ParticipantRead
from chronos.services.permissions import (
    CalendarAction,
    ensure_calendar_access,
    get_participant,
)

logger = logging.getLogger(__name__)


def _to_read(participant: CalendarParticipant, user: User) -> ParticipantRead:
    return ParticipantRead(
        calendar_id=participant.calendar_id,
        user_id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=participant.role,
        created_at=participant.created_at,
    )


def list_participants(
    session: Session, calendar_id: UUID, user: User
) -> List[ParticipantRead]:
    ensure_calendar_access(session, calendar_id, user)

    query = (
        sql_select(CalendarParticipant, User)
        .join(User, User.id == CalendarParticipant.user_id)
        .where(CalendarParticipant.calendar_id == calendar_id)
        .order_by(CalendarParticipant.created_at)
    )
    return [_to_read(participant, member) for participant, member in session.exec(query).all()]


def add_participant(
    session: Session,
    calendar: Calendar,
    user_id: UUID,
    role: ParticipantRole = ParticipantRole.READER,
    commit: bool = True,
) -> tuple[CalendarParticipant | None, bool]:
    """Insert a participant unless the user already owns or belongs to the calendar.

    Returns ``(participant, created)``.  An existing membership is left untouched.
    A concurrent insert of the same pair surfaces as ``IntegrityError`` on the
    primary key and is treated as "already a participant"; the pending
    transaction is rolled back in that case.  With ``commit=False`` the row is
    only flushed and the caller commits.
    """
    calendar_id = calendar.id
    if calendar.owner_id == user_id:
        return None, False

    existing = get_participant(session, calendar_id, user_id)
    if existing:
        return existing, False

    participant = CalendarParticipant(
        calendar_id=calendar_id, user_id=user_id, role=ParticipantRole(role).value
    )
    session.add(participant)
    try:
        if commit:
            session.commit()
        else:
            session.flush()
    except IntegrityError:
        session.rollback()
        logger.info(
            "Concurrent join of calendar %s by user %s, keeping existing row",
            calendar_id,
            user_id,
        )
        return get_participant(session, calendar_id, user_id), False

    if commit:
        session.refresh(participant)
    logger.info(
        "User %s joined calendar %s as %s", user_id, calendar_id, participant.role
    )
    return participant, True


def _get_participant_or_404(
    session: Session, calendar: Calendar, user_id: UUID
) -> CalendarParticipant:
    participant = get_participant(session, calendar.id, user_id)
    if not participant:
        raise NotFoundError("Participant not found")
    return participant


def update_participant_role(
    session: Session,
    calendar_id: UUID,
    target_user_id: UUID,
    role: ParticipantRole,
    user: User,
) -> ParticipantRead:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_PARTICIPANTS
    )
    if calendar.owner_id == target_user_id:
        raise ConflictError("Cannot change the calendar owner's role")

    participant = _get_participant_or_404(session, calendar, target_user_id)
    participant.role = ParticipantRole(role).value
    participant.touch()
    session.add(participant)
    session.commit()
    session.refresh(participant)
    logger.info(
        "User %s set role of %s on calendar %s to %s",
        user.id,
        target_user_id,
        calendar_id,
        participant.role,
    )

    target = session.get(User, target_user_id)
    return _to_read(participant, target)


def remove_participant(
    session: Session, calendar_id: UUID, target_user_id: UUID, user: User
) -> None:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_PARTICIPANTS
    )
    if calendar.owner_id == target_user_id:
        raise ConflictError("Cannot remove the calendar owner")

    participant = _get_participant_or_404(session, calendar, target_user_id)
    session.delete(participant)
    session.commit()
    logger.info(
        "User %s removed %s from calendar %s", user.id, target_user_id, calendar_id
    )


def leave_calendar(session: Session, calendar_id: UUID, user: User) -> None:
    calendar = session.get(Calendar, calendar_id)
    if not calendar:
        raise NotFoundError("Calendar not found")
    if calendar.owner_id == user.id:
        raise ConflictError("The calendar owner cannot leave their own calendar")

    participant = get_participant(session, calendar.id, user.id)
    if not participant:
        raise NotFoundError("You are not a participant of this calendar")

    session.delete(participant)
    session.commit()
    logger.info("User %s left calendar %s", user.id, calendar_id)
