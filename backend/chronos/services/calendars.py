"""
Calendar lifecycle rules.

Each user gets exactly one main calendar at registration and may own at most one
holiday calendar.  Main calendars can be neither hidden nor deleted; holiday
calendars cannot be deleted.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, delete, select

from chronos.core.exceptions import ConflictError, ProtectedCalendarError
from chronos.models import (
    Calendar,
    CalendarEmailInvite,
    CalendarInviteLink,
    CalendarParticipant,
    Event,
    EventCategory,
    User,
)
from chronos.schemas import CalendarCreate, CalendarUpdate
from chronos.services.events import delete_event
from chronos.services.permissions import (
    OWNER_ROLE,
    CalendarAction,
    calendar_access_condition,
    ensure_calendar_access,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    {"name": "Arrangement", "description": "For appointments and meetings", "color": "#4285F4"},
    {"name": "Reminder", "description": "For reminders and alerts", "color": "#EA4335"},
    {"name": "Task", "description": "For to-dos and tasks", "color": "#FBBC05"},
)


def seed_default_categories(session: Session, calendar: Calendar) -> list[EventCategory]:
    categories = [
        EventCategory(calendar_id=calendar.id, **data) for data in DEFAULT_CATEGORIES
    ]
    session.add_all(categories)
    return categories


def get_main_calendar(session: Session, user_id: UUID) -> Calendar | None:
    return session.exec(
        select(Calendar).where(Calendar.owner_id == user_id, Calendar.is_main == True)  # noqa: E712
    ).first()


def ensure_main_calendar(session: Session, user: User) -> Calendar:
    """Return the user's main calendar, creating it with default categories."""
    existing = get_main_calendar(session, user.id)
    if existing:
        return existing

    calendar = Calendar(
        name=user.full_name or user.username,
        description=f"Main calendar of {user.username}",
        owner_id=user.id,
        is_main=True,
    )
    session.add(calendar)
    session.flush()
    seed_default_categories(session, calendar)
    logger.info("Created main calendar %s for user %s", calendar.id, user.id)
    return calendar


def create_calendar(session: Session, user: User, payload: CalendarCreate) -> Calendar:
    if payload.is_holiday:
        holiday = session.exec(
            select(Calendar).where(
                Calendar.owner_id == user.id, Calendar.is_holiday == True  # noqa: E712
            )
        ).first()
        if holiday:
            raise ConflictError("You already have a holiday calendar")

    calendar = Calendar(
        **payload.model_dump(),
        owner_id=user.id,
        is_main=False,
        is_visible=True,
    )
    session.add(calendar)
    session.flush()
    seed_default_categories(session, calendar)
    return calendar


def list_user_calendars(session: Session, user: User) -> list[tuple[Calendar, str | None]]:
    """Owned and shared calendars paired with the user's role on each."""
    calendars = session.exec(
        select(Calendar)
        .where(calendar_access_condition(user.id))
        .order_by(Calendar.is_main.desc(), Calendar.created_at)
    ).all()

    roles = {
        participant.calendar_id: participant.role
        for participant in session.exec(
            select(CalendarParticipant).where(CalendarParticipant.user_id == user.id)
        )
    }
    return [
        (calendar, OWNER_ROLE if calendar.owner_id == user.id else roles.get(calendar.id))
        for calendar in calendars
    ]


def update_calendar(
    session: Session, calendar_id: UUID, user: User, payload: CalendarUpdate
) -> Calendar:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_CALENDAR
    )
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(calendar, field, value)
    calendar.touch()
    session.add(calendar)
    return calendar


def set_calendar_visibility(
    session: Session, calendar_id: UUID, user: User, is_visible: bool
) -> Calendar:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_CALENDAR
    )
    if calendar.is_main:
        raise ProtectedCalendarError("Cannot modify main calendar visibility")

    calendar.is_visible = is_visible
    calendar.touch()
    session.add(calendar)
    return calendar


def delete_calendar(session: Session, calendar_id: UUID, user: User) -> None:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.DELETE_CALENDAR
    )
    if calendar.is_main or calendar.is_holiday:
        raise ProtectedCalendarError("Cannot delete main or holiday calendar")

    for event in session.exec(select(Event).where(Event.calendar_id == calendar.id)).all():
        delete_event(session, event)
    session.flush()

    for model in (
        EventCategory,
        CalendarParticipant,
        CalendarInviteLink,
        CalendarEmailInvite,
    ):
        session.exec(delete(model).where(model.calendar_id == calendar.id))

    session.delete(calendar)
    logger.info("Calendar %s deleted by user %s", calendar.id, user.id)
