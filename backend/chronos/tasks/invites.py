"""Periodic cleanup of expired invitations."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlmodel import Session, delete

from chronos.celery_app import celery_app
from chronos.db import engine
from chronos.models import CalendarEmailInvite, CalendarInviteLink, EventEmailInvite

logger = logging.getLogger(__name__)


def purge_expired_invites(session: Session, now: datetime | None = None) -> dict[str, int]:
    now = now or datetime.utcnow()
    counts: dict[str, int] = {}
    for model in (CalendarInviteLink, CalendarEmailInvite, EventEmailInvite):
        result = session.exec(
            delete(model).where(model.expires_at.is_not(None), model.expires_at <= now)
        )
        counts[model.__tablename__] = result.rowcount or 0
    session.commit()
    return counts


@celery_app.task(name="chronos.tasks.invites.purge_expired_invites_task")
def purge_expired_invites_task() -> dict[str, int]:
    """Delete invite links and email invites whose expiry has passed."""
    with Session(engine) as session:
        counts = purge_expired_invites(session)
    logger.info("Purged expired invites: %s", counts)
    return counts
