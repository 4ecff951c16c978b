from __future__ import annotations

from typing import Iterable, List
from uuid import UUID

from sqlalchemy import select as sql_select
from sqlmodel import Session, delete, select

from chronos.models import Event, EventEmailInvite, EventParticipant, User
from chronos.schemas import EventParticipantRead, EventRead


def load_event_participants(
    session: Session, event_id: UUID
) -> List[EventParticipantRead]:
    stmt = (
        sql_select(EventParticipant, User)
        .join(User, EventParticipant.user_id == User.id)
        .where(EventParticipant.event_id == event_id)
        .order_by(EventParticipant.created_at)
    )
    rows = session.exec(stmt).all()
    return [
        EventParticipantRead(
            user_id=p.user_id,
            username=u.username,
            email=u.email,
            full_name=u.full_name,
            has_confirmed=p.has_confirmed,
        )
        for p, u in rows
    ]


def serialize_event(session: Session, event: Event) -> EventRead:
    participants = load_event_participants(session, event.id)
    return EventRead.model_validate(event).model_copy(
        update={"participants": participants}
    )


def get_event_participant(
    session: Session, event_id: UUID, user_id: UUID
) -> EventParticipant | None:
    return session.get(EventParticipant, (event_id, user_id))


def attach_participants(
    session: Session, event_id: UUID, user_ids: Iterable[UUID]
) -> None:
    """Add event participants, skipping users that are already attached or unknown."""
    for user_id in set(user_ids):
        if get_event_participant(session, event_id, user_id):
            continue
        if not session.get(User, user_id):
            continue
        session.add(EventParticipant(event_id=event_id, user_id=user_id))


def sync_participants(
    session: Session, event_id: UUID, user_ids: Iterable[UUID]
) -> None:
    """Make the participant set equal ``user_ids``, keeping confirmations."""
    wanted = set(user_ids)
    existing = session.exec(
        select(EventParticipant).where(EventParticipant.event_id == event_id)
    ).all()
    for participant in existing:
        if participant.user_id not in wanted:
            session.delete(participant)
    attach_participants(
        session, event_id, wanted - {p.user_id for p in existing}
    )


def delete_event(session: Session, event: Event) -> None:
    """Delete an event with its participants and pending email invites."""
    session.exec(delete(EventParticipant).where(EventParticipant.event_id == event.id))
    session.exec(delete(EventEmailInvite).where(EventEmailInvite.event_id == event.id))
    session.delete(event)
