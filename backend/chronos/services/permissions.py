"""Calendar access control.

Every protected operation resolves its target to the owning calendar and asks
``ensure_calendar_access`` whether the user's role allows the action.  The owner
is never stored as a participant; it holds the implicit ``owner`` role.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from sqlalchemy import or_, select
from sqlmodel import Session

from chronos.core.exceptions import NotAuthorizedError, NotFoundError
from chronos.models import (
    Calendar,
    CalendarParticipant,
    Event,
    EventCategory,
    EventParticipant,
    ParticipantRole,
    User,
)

OWNER_ROLE = "owner"


class CalendarAction(str, Enum):
    VIEW = "view"
    MANAGE_EVENTS = "manage_events"
    MANAGE_CATEGORIES = "manage_categories"
    MANAGE_CALENDAR = "manage_calendar"
    MANAGE_PARTICIPANTS = "manage_participants"
    MANAGE_INVITES = "manage_invites"
    DELETE_CALENDAR = "delete_calendar"


_READER_ACTIONS = frozenset({CalendarAction.VIEW})
_CREATOR_ACTIONS = _READER_ACTIONS | {
    CalendarAction.MANAGE_EVENTS,
    CalendarAction.MANAGE_CATEGORIES,
}
_ADMIN_ACTIONS = frozenset(CalendarAction)

ROLE_PERMISSIONS: dict[str, frozenset[CalendarAction]] = {
    ParticipantRole.READER.value: _READER_ACTIONS,
    ParticipantRole.CREATOR.value: _CREATOR_ACTIONS,
    ParticipantRole.ADMIN.value: _ADMIN_ACTIONS,
    OWNER_ROLE: _ADMIN_ACTIONS,
}

ROLE_RANK: dict[str, int] = {
    ParticipantRole.READER.value: 1,
    ParticipantRole.CREATOR.value: 2,
    ParticipantRole.ADMIN.value: 3,
    OWNER_ROLE: 4,
}

_ACTION_DENIED_MESSAGES: dict[CalendarAction, str] = {
    CalendarAction.VIEW: "Access to calendar denied",
    CalendarAction.MANAGE_EVENTS: "Not authorized to manage events in this calendar",
    CalendarAction.MANAGE_CATEGORIES: "Not authorized to manage categories in this calendar",
    CalendarAction.MANAGE_CALENDAR: "Only the calendar owner or an admin can change calendar settings",
    CalendarAction.MANAGE_PARTICIPANTS: "Only the calendar owner or an admin can manage participants",
    CalendarAction.MANAGE_INVITES: "Only the calendar owner or an admin can manage invites",
    CalendarAction.DELETE_CALENDAR: "Only the calendar owner or an admin can delete this calendar",
}


def _role_value(role: str | ParticipantRole) -> str:
    return role.value if isinstance(role, ParticipantRole) else role


def is_allowed(role: str | ParticipantRole | None, action: CalendarAction) -> bool:
    if role is None:
        return False
    return action in ROLE_PERMISSIONS.get(_role_value(role), frozenset())


def role_exceeds(role: str | ParticipantRole, other: str | ParticipantRole) -> bool:
    """True when ``role`` grants strictly more than ``other``."""
    return ROLE_RANK[_role_value(role)] > ROLE_RANK[_role_value(other)]


def calendar_access_condition(user_id: UUID):
    participant_subquery = select(CalendarParticipant.calendar_id).where(
        CalendarParticipant.user_id == user_id
    )
    return or_(Calendar.owner_id == user_id, Calendar.id.in_(participant_subquery))


def get_participant(
    session: Session, calendar_id: UUID, user_id: UUID
) -> CalendarParticipant | None:
    return session.get(CalendarParticipant, (calendar_id, user_id))


def get_user_calendar_role(
    session: Session,
    calendar: Calendar,
    user_id: UUID,
) -> str | None:
    if calendar.owner_id == user_id:
        return OWNER_ROLE

    participant = get_participant(session, calendar.id, user_id)
    return participant.role if participant else None


def check_calendar_access(
    session: Session,
    calendar: Calendar,
    user: User,
    action: CalendarAction = CalendarAction.VIEW,
) -> str:
    """Return the user's role on ``calendar`` or raise ``NotAuthorizedError``."""
    role = get_user_calendar_role(session, calendar, user.id)
    if not is_allowed(role, action):
        raise NotAuthorizedError(
            _ACTION_DENIED_MESSAGES[action],
            details={"calendar_id": str(calendar.id), "role": role},
        )
    return role


def ensure_calendar_access(
    session: Session,
    calendar_id: UUID,
    user: User,
    action: CalendarAction = CalendarAction.VIEW,
) -> Calendar:
    calendar = session.get(Calendar, calendar_id)
    if not calendar:
        raise NotFoundError("Calendar not found")

    check_calendar_access(session, calendar, user, action)
    return calendar


def ensure_category_access(
    session: Session,
    category_id: UUID,
    user: User,
    action: CalendarAction = CalendarAction.VIEW,
) -> EventCategory:
    category = session.get(EventCategory, category_id)
    if not category:
        raise NotFoundError("Category not found")

    ensure_calendar_access(session, category.calendar_id, user, action)
    return category


def ensure_event_access(
    session: Session,
    event_id: UUID,
    user: User,
    action: CalendarAction = CalendarAction.VIEW,
) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")

    calendar = session.get(Calendar, event.calendar_id)
    if not calendar:
        raise NotFoundError("Calendar not found")

    role = get_user_calendar_role(session, calendar, user.id)
    if is_allowed(role, action):
        return event

    # Invitees see the event even without access to its calendar
    if action == CalendarAction.VIEW and session.get(
        EventParticipant, (event.id, user.id)
    ):
        return event

    raise NotAuthorizedError(
        _ACTION_DENIED_MESSAGES.get(action, "Access to event denied"),
        details={"event_id": str(event.id), "role": role},
    )
