"""
Redeeming invite links and email invites.

Link state is ``active`` until ``expires_at`` passes or an admin deletes it; a
link may be accepted any number of times.  Email invites are ``pending`` until
accepted (the row is deleted), revoked (deleted by an admin) or expired.
Info lookups enforce the same expiry rule as acceptance.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from chronos.core.exceptions import (
    InviteExpiredError,
    NotAuthorizedError,
    NotFoundError,
)
from chronos.models import (
    Calendar,
    CalendarEmailInvite,
    CalendarInviteLink,
    Event,
    EventEmailInvite,
    EventParticipant,
    ParticipantRole,
    User,
)
from chronos.schemas import CalendarInviteInfo, EventInviteInfo, PublicUserSummary
from chronos.services.events import get_event_participant
from chronos.services.participants import add_participant
from chronos.services.permissions import role_exceeds

logger = logging.getLogger(__name__)


def _calendar_for_invite(session: Session, calendar_id: UUID) -> Calendar:
    calendar = session.get(Calendar, calendar_id)
    if not calendar:
        raise NotFoundError("Calendar associated with this invite was not found")
    return calendar


def _summary(session: Session, user_id: Optional[UUID]) -> Optional[PublicUserSummary]:
    if user_id is None:
        return None
    user = session.get(User, user_id)
    return PublicUserSummary.model_validate(user) if user else None


def _calendar_info(
    session: Session,
    calendar: Calendar,
    role: str,
    expires_at: Optional[datetime],
) -> CalendarInviteInfo:
    return CalendarInviteInfo(
        calendar_id=calendar.id,
        calendar_name=calendar.name,
        calendar_description=calendar.description,
        calendar_color=calendar.color,
        role=role,
        owner=_summary(session, calendar.owner_id),
        expires_at=expires_at,
    )


def _check_email_matches(invite_email: str, user: User) -> None:
    if (user.email or "").strip().lower() != invite_email.strip().lower():
        raise NotAuthorizedError(
            "This invitation was sent to a different email address"
        )


# Invite links


def get_active_invite_link(
    session: Session, link_id: UUID, now: datetime | None = None
) -> CalendarInviteLink:
    link = session.get(CalendarInviteLink, link_id)
    if not link:
        raise NotFoundError("Invite link not found")
    if link.is_expired(now):
        raise InviteExpiredError("Invite link has expired")
    return link


def get_invite_link_info(
    session: Session, link_id: UUID, now: datetime | None = None
) -> CalendarInviteInfo:
    link = get_active_invite_link(session, link_id, now)
    calendar = _calendar_for_invite(session, link.calendar_id)
    return _calendar_info(session, calendar, link.role, link.expires_at)


def accept_invite_link(
    session: Session,
    link_id: UUID,
    user: User,
    role: ParticipantRole | None = None,
    now: datetime | None = None,
) -> Calendar:
    """Join the link's calendar.

    ``role`` may narrow the link's role but never widen it.  Accepting again as
    an existing participant or as the owner changes nothing.
    """
    link = get_active_invite_link(session, link_id, now)
    calendar = _calendar_for_invite(session, link.calendar_id)

    link_role = link.role or ParticipantRole.READER.value
    effective_role = ParticipantRole(role).value if role else link_role
    if role_exceeds(effective_role, link_role):
        raise NotAuthorizedError(
            "Requested role exceeds the role granted by this invite link",
            details={"link_role": link_role, "requested_role": effective_role},
        )

    _, created = add_participant(session, calendar, user.id, effective_role)
    if created:
        logger.info(
            "User %s accepted invite link %s for calendar %s",
            user.id,
            link.id,
            calendar.id,
        )
    return calendar


# Calendar email invites


def get_pending_calendar_email_invite(
    session: Session, token: str, now: datetime | None = None
) -> CalendarEmailInvite:
    invite = session.exec(
        select(CalendarEmailInvite).where(CalendarEmailInvite.token == token)
    ).first()
    if not invite:
        raise NotFoundError("Invite not found or already used")
    if invite.is_expired(now):
        raise InviteExpiredError("Invite has expired")
    return invite


def get_calendar_email_invite_info(
    session: Session, token: str, now: datetime | None = None
) -> CalendarInviteInfo:
    invite = get_pending_calendar_email_invite(session, token, now)
    calendar = _calendar_for_invite(session, invite.calendar_id)
    return _calendar_info(session, calendar, invite.role, invite.expires_at)


def accept_calendar_email_invite(
    session: Session, token: str, user: User, now: datetime | None = None
) -> Calendar:
    invite = get_pending_calendar_email_invite(session, token, now)
    _check_email_matches(invite.email, user)
    calendar = _calendar_for_invite(session, invite.calendar_id)

    invite_id = invite.id
    user_id = user.id

    # Membership and invite deletion are committed together
    add_participant(session, calendar, user_id, invite.role, commit=False)
    invite = session.get(CalendarEmailInvite, invite_id)
    if invite is not None:
        session.delete(invite)
    session.commit()
    logger.info(
        "User %s accepted calendar email invite %s for calendar %s",
        user_id,
        invite_id,
        calendar.id,
    )
    return calendar


# Event email invites


def get_pending_event_email_invite(
    session: Session, token: str, now: datetime | None = None
) -> EventEmailInvite:
    invite = session.exec(
        select(EventEmailInvite).where(EventEmailInvite.token == token)
    ).first()
    if not invite:
        raise NotFoundError("Invite not found or already used")
    if invite.is_expired(now):
        raise InviteExpiredError("Invite has expired")
    return invite


def _event_for_invite(session: Session, event_id: UUID) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event associated with this invite was not found")
    return event


def get_event_email_invite_info(
    session: Session, token: str, now: datetime | None = None
) -> EventInviteInfo:
    invite = get_pending_event_email_invite(session, token, now)
    event = _event_for_invite(session, invite.event_id)
    calendar = _calendar_for_invite(session, event.calendar_id)
    return EventInviteInfo(
        event_id=event.id,
        event_title=event.title,
        starts_at=event.starts_at,
        ends_at=event.ends_at,
        calendar_id=calendar.id,
        calendar_name=calendar.name,
        email=invite.email,
        inviter=_summary(session, invite.invited_by_id),
        expires_at=invite.expires_at,
    )


def accept_event_email_invite(
    session: Session, token: str, user: User, now: datetime | None = None
) -> Event:
    invite = get_pending_event_email_invite(session, token, now)
    _check_email_matches(invite.email, user)
    if invite.user_id is not None and invite.user_id != user.id:
        raise NotAuthorizedError("This invitation was issued to another user")
    event = _event_for_invite(session, invite.event_id)
    invite_id, event_id, user_id = invite.id, event.id, user.id

    if not get_event_participant(session, event_id, user_id):
        session.add(EventParticipant(event_id=event_id, user_id=user_id))
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            logger.info(
                "Concurrent acceptance of event %s by user %s, keeping existing row",
                event_id,
                user_id,
            )

    invite = session.get(EventEmailInvite, invite_id)
    if invite is not None:
        session.delete(invite)
    session.commit()
    session.refresh(event)
    logger.info(
        "User %s accepted event email invite %s for event %s",
        user_id,
        invite_id,
        event_id,
    )
    return event
