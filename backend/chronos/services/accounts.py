"""
Registration and email ownership checks.

New accounts start unverified and are mailed a single-use token; login is
refused until it is confirmed.  Changing the address works the same way: the
new address waits in ``pending_email`` until the token mailed to it is
confirmed.  Tokens expire after ``EMAIL_VERIFICATION_EXPIRE_MINUTES``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlmodel import Session, select

from chronos.core.config import settings
from chronos.core.exceptions import ConflictError
from chronos.core.security import (
    generate_verification_token,
    get_password_hash,
    verify_password,
)
from chronos.models import User
from chronos.schemas import UserCreate
from chronos.services.calendars import ensure_main_calendar
from chronos.services.mail import send_email_change_email, send_verification_email

logger = logging.getLogger(__name__)


def _token_expiry(now: datetime | None) -> datetime:
    return (now or datetime.utcnow()) + timedelta(
        minutes=settings.EMAIL_VERIFICATION_EXPIRE_MINUTES
    )


def _is_expired(expires_at: datetime | None, now: datetime | None) -> bool:
    return expires_at is not None and expires_at < (now or datetime.utcnow())


def email_in_use(
    session: Session, email: str, exclude_user_id: UUID | None = None
) -> bool:
    statement = select(User).where(User.email == email)
    if exclude_user_id is not None:
        statement = statement.where(User.id != exclude_user_id)
    return session.exec(statement).first() is not None


def start_email_verification(
    session: Session, user: User, now: datetime | None = None
) -> None:
    user.email_verification_token = generate_verification_token()
    user.email_verification_expires_at = _token_expiry(now)
    user.touch()
    session.add(user)


def register_user(
    session: Session, payload: UserCreate, now: datetime | None = None
) -> User:
    """Create the account with its main calendar and mail the verification link."""
    email = payload.email.lower()
    if email_in_use(session, email):
        raise ConflictError("Email is already registered")
    if session.exec(select(User).where(User.username == payload.username)).first():
        raise ConflictError("Username is already taken")

    user = User(
        username=payload.username,
        email=email,
        full_name=payload.full_name,
        region=payload.region,
        hashed_password=get_password_hash(payload.password),
        is_email_verified=not settings.EMAIL_VERIFICATION_REQUIRED,
    )
    session.add(user)
    session.flush()
    ensure_main_calendar(session, user)
    if settings.EMAIL_VERIFICATION_REQUIRED:
        start_email_verification(session, user, now)
    session.commit()
    session.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)

    if user.email_verification_token:
        send_verification_email(user)
    return user


def verify_email(session: Session, token: str, now: datetime | None = None) -> User:
    user = session.exec(
        select(User).where(User.email_verification_token == token)
    ).first()
    if not user:
        raise ConflictError("Invalid verification token")
    if _is_expired(user.email_verification_expires_at, now):
        raise ConflictError("Verification token has expired")

    user.is_email_verified = True
    user.email_verification_token = None
    user.email_verification_expires_at = None
    user.touch()
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User %s verified email", user.id)
    return user


def resend_verification(
    session: Session, email: str, now: datetime | None = None
) -> None:
    """Issue a fresh verification token; unknown or verified addresses are ignored."""
    user = session.exec(select(User).where(User.email == email.lower())).first()
    if not user or user.is_email_verified:
        logger.info("No pending verification for %s, nothing resent", email)
        return

    start_email_verification(session, user, now)
    session.commit()
    session.refresh(user)
    send_verification_email(user)
    logger.info("Resent verification email to user %s", user.id)


def request_email_change(
    session: Session,
    user: User,
    new_email: str,
    password: str,
    now: datetime | None = None,
) -> None:
    if not verify_password(password, user.hashed_password):
        raise ConflictError("Password is incorrect")

    new_email = new_email.strip().lower()
    if new_email == user.email:
        raise ConflictError("New email is the same as the current one")
    if email_in_use(session, new_email):
        raise ConflictError("Email is already in use")

    user.pending_email = new_email
    user.email_change_token = generate_verification_token()
    user.email_change_expires_at = _token_expiry(now)
    user.touch()
    session.add(user)
    session.commit()
    session.refresh(user)
    send_email_change_email(user)
    logger.info("User %s requested an email change", user.id)


def confirm_email_change(
    session: Session, token: str, now: datetime | None = None
) -> User:
    user = session.exec(select(User).where(User.email_change_token == token)).first()
    if not user:
        raise ConflictError("Invalid verification token")
    if not user.pending_email:
        raise ConflictError("No email change was requested")
    if _is_expired(user.email_change_expires_at, now):
        raise ConflictError("Verification token has expired")
    # The address may have been registered since the change was requested
    if email_in_use(session, user.pending_email, exclude_user_id=user.id):
        raise ConflictError("Email is already in use")

    user.email = user.pending_email
    user.is_email_verified = True
    user.pending_email = None
    user.email_change_token = None
    user.email_change_expires_at = None
    user.touch()
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User %s confirmed email change", user.id)
    return user
