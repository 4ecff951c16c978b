"""
Issuing calendar invite links and email invites for calendars and events.

Invite links are reusable bearer tokens (the row id) granting a fixed role until
they expire or are deleted.  Email invites carry a separate random token and are
consumed on acceptance.  Issuing never sends mail synchronously; delivery is
queued on Celery after the rows are committed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from sqlmodel import Session, select

from chronos.core.config import settings
from chronos.core.exceptions import NotFoundError
from chronos.models import (
    CalendarEmailInvite,
    CalendarInviteLink,
    EventEmailInvite,
    ParticipantRole,
    User,
)
from chronos.schemas import InviteLinkRead
from chronos.services.mail import (
    calendar_invite_link_url,
    send_calendar_invite_email,
    send_event_invite_email,
)
from chronos.services.permissions import (
    CalendarAction,
    ensure_calendar_access,
    ensure_event_access,
)

logger = logging.getLogger(__name__)


def compute_expiry(
    expire_in_days: Optional[int], now: datetime | None = None
) -> Optional[datetime]:
    if expire_in_days is None:
        return None
    if expire_in_days < 1:
        raise ValueError("expire_in_days must be at least 1")
    return (now or datetime.utcnow()) + timedelta(days=expire_in_days)


def normalize_emails(emails: Iterable[str]) -> List[str]:
    """Lower-case, strip and de-duplicate while keeping the input order."""
    seen: dict[str, None] = {}
    for email in emails:
        normalized = email.strip().lower()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def serialize_invite_link(link: CalendarInviteLink) -> InviteLinkRead:
    return InviteLinkRead(
        id=link.id,
        calendar_id=link.calendar_id,
        role=link.role,
        expires_at=link.expires_at,
        created_at=link.created_at,
        invite_url=calendar_invite_link_url(link.id),
    )


def create_invite_link(
    session: Session,
    calendar_id: UUID,
    user: User,
    expire_in_days: Optional[int] = None,
    role: ParticipantRole = ParticipantRole.READER,
    now: datetime | None = None,
) -> CalendarInviteLink:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_INVITES)

    link = CalendarInviteLink(
        calendar_id=calendar_id,
        role=ParticipantRole(role).value,
        created_by_id=user.id,
        expires_at=compute_expiry(expire_in_days, now),
    )
    session.add(link)
    session.commit()
    session.refresh(link)
    logger.info(
        "User %s created invite link %s for calendar %s (role=%s, expires_at=%s)",
        user.id,
        link.id,
        calendar_id,
        link.role,
        link.expires_at,
    )
    return link


def list_invite_links(
    session: Session, calendar_id: UUID, user: User
) -> List[CalendarInviteLink]:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_INVITES)
    return session.exec(
        select(CalendarInviteLink)
        .where(CalendarInviteLink.calendar_id == calendar_id)
        .order_by(CalendarInviteLink.created_at.desc())
    ).all()


def delete_invite_link(
    session: Session, calendar_id: UUID, link_id: UUID, user: User
) -> None:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_INVITES)

    link = session.get(CalendarInviteLink, link_id)
    if not link or link.calendar_id != calendar_id:
        raise NotFoundError("Invite link not found")

    session.delete(link)
    session.commit()
    logger.info("User %s deleted invite link %s", user.id, link_id)


def create_calendar_email_invites(
    session: Session,
    calendar_id: UUID,
    user: User,
    emails: Iterable[str],
    role: ParticipantRole = ParticipantRole.READER,
    expire_in_days: Optional[int] = None,
    now: datetime | None = None,
) -> List[CalendarEmailInvite]:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_INVITES
    )
    if expire_in_days is None:
        expire_in_days = settings.DEFAULT_EMAIL_INVITE_EXPIRE_DAYS
    expires_at = compute_expiry(expire_in_days, now)

    invites = [
        CalendarEmailInvite(
            calendar_id=calendar.id,
            email=email,
            role=ParticipantRole(role).value,
            invited_by_id=user.id,
            expires_at=expires_at,
        )
        for email in normalize_emails(emails)
    ]
    session.add_all(invites)
    session.commit()

    for invite in invites:
        session.refresh(invite)
        send_calendar_invite_email(invite, calendar, user)
    logger.info(
        "User %s issued %d email invites for calendar %s",
        user.id,
        len(invites),
        calendar.id,
    )
    return invites


def list_calendar_email_invites(
    session: Session, calendar_id: UUID, user: User
) -> List[CalendarEmailInvite]:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_INVITES)
    return session.exec(
        select(CalendarEmailInvite)
        .where(CalendarEmailInvite.calendar_id == calendar_id)
        .order_by(CalendarEmailInvite.created_at.desc())
    ).all()


def delete_calendar_email_invite(
    session: Session, calendar_id: UUID, invite_id: UUID, user: User
) -> None:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_INVITES)

    invite = session.get(CalendarEmailInvite, invite_id)
    if not invite or invite.calendar_id != calendar_id:
        raise NotFoundError("Email invite not found")

    session.delete(invite)
    session.commit()
    logger.info("User %s revoked calendar email invite %s", user.id, invite_id)


def create_event_email_invites(
    session: Session,
    event_id: UUID,
    user: User,
    emails: Iterable[str],
    expire_in_days: Optional[int] = None,
    now: datetime | None = None,
) -> List[EventEmailInvite]:
    event = ensure_event_access(session, event_id, user, CalendarAction.MANAGE_EVENTS)
    if expire_in_days is None:
        expire_in_days = settings.DEFAULT_EMAIL_INVITE_EXPIRE_DAYS
    expires_at = compute_expiry(expire_in_days, now)

    normalized = normalize_emails(emails)
    known_users = {
        known.email: known.id
        for known in session.exec(select(User).where(User.email.in_(normalized))).all()
    }

    invites = [
        EventEmailInvite(
            event_id=event.id,
            email=email,
            user_id=known_users.get(email),
            invited_by_id=user.id,
            expires_at=expires_at,
        )
        for email in normalized
    ]
    session.add_all(invites)
    session.commit()

    for invite in invites:
        session.refresh(invite)
        send_event_invite_email(invite, event, user)
    logger.info(
        "User %s issued %d email invites for event %s", user.id, len(invites), event.id
    )
    return invites


def list_event_email_invites(
    session: Session, event_id: UUID, user: User
) -> List[EventEmailInvite]:
    ensure_event_access(session, event_id, user, CalendarAction.MANAGE_EVENTS)
    return session.exec(
        select(EventEmailInvite)
        .where(EventEmailInvite.event_id == event_id)
        .order_by(EventEmailInvite.created_at.desc())
    ).all()


def delete_event_email_invite(session: Session, invite_id: UUID, user: User) -> None:
    invite = session.get(EventEmailInvite, invite_id)
    if not invite:
        raise NotFoundError("Email invite not found")

    ensure_event_access(session, invite.event_id, user, CalendarAction.MANAGE_EVENTS)
    session.delete(invite)
    session.commit()
    logger.info("User %s revoked event email invite %s", user.id, invite_id)
