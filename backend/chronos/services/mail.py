"""Invitation and account emails, delivered in the background by Celery."""

from __future__ import annotations

from html import escape

from chronos.core.celery_utils import safe_celery_delay
from chronos.core.config import settings
from chronos.models import Calendar, CalendarEmailInvite, Event, EventEmailInvite, User
from chronos.tasks.mail import send_email_task


def calendar_invite_link_url(link_id) -> str:
    return f"{settings.FRONTEND_URL}/calendar/invite/{link_id}"


def calendar_email_invite_url(token: str) -> str:
    return f"{settings.FRONTEND_URL}/calendar/email-invite/{token}"


def event_email_invite_url(token: str) -> str:
    return f"{settings.FRONTEND_URL}/events/email-invite/{token}"


def email_verification_url(token: str) -> str:
    return f"{settings.FRONTEND_URL}/verify-email?token={token}"


def email_change_url(token: str) -> str:
    return f"{settings.FRONTEND_URL}/account/settings/email/verify?token={token}"


def _button(url: str, label: str) -> str:
    return (
        f'<div style="text-align: center; margin: 25px 0;">'
        f'<a href="{url}" style="background-color: #4a6fa5; color: white; '
        f'padding: 12px 24px; text-decoration: none; border-radius: 4px;">{label}</a>'
        f"</div>"
        f"<p>Or copy and paste this URL into your browser:</p>"
        f'<p style="word-break: break-all;">{url}</p>'
    )


def send_calendar_invite_email(
    invite: CalendarEmailInvite, calendar: Calendar, inviter: User
) -> None:
    url = calendar_email_invite_url(invite.token)
    html = (
        "<h1>Calendar Invitation</h1>"
        f"<p>{escape(inviter.full_name or inviter.username)} invited you to join the calendar "
        f"<strong>{escape(calendar.name)}</strong> as {invite.role}.</p>"
        f"{_button(url, 'Accept Invitation')}"
        "<p><small>If you don't have an account, you'll need to sign up first.</small></p>"
    )
    safe_celery_delay(
        send_email_task,
        invite.email,
        "You've been invited to join a calendar",
        html,
    )


def send_event_invite_email(
    invite: EventEmailInvite, event: Event, inviter: User
) -> None:
    url = event_email_invite_url(invite.token)
    html = (
        "<h1>Event Invitation</h1>"
        f"<p>{escape(inviter.full_name or inviter.username)} invited you to "
        f"<strong>{escape(event.title)}</strong> "
        f"({event.starts_at:%Y-%m-%d %H:%M} - {event.ends_at:%Y-%m-%d %H:%M} UTC).</p>"
        f"{_button(url, 'View Invitation')}"
    )
    safe_celery_delay(
        send_email_task,
        invite.email,
        f"Invitation: {event.title}",
        html,
    )


def send_verification_email(user: User) -> None:
    url = email_verification_url(user.email_verification_token)
    html = (
        f"<h1>Welcome to {escape(settings.PROJECT_NAME)}!</h1>"
        "<p>Please confirm your email address to finish signing up.</p>"
        f"{_button(url, 'Verify Email')}"
        f"<p>This link will expire in {settings.EMAIL_VERIFICATION_EXPIRE_MINUTES} minutes.</p>"
        "<p><small>If you didn't create an account, please ignore this email.</small></p>"
    )
    safe_celery_delay(send_email_task, user.email, "Verify your email address", html)


def send_email_change_email(user: User) -> None:
    url = email_change_url(user.email_change_token)
    html = (
        "<h1>Email Change Request</h1>"
        f"<p>Confirm that <strong>{escape(user.pending_email)}</strong> should become "
        f"the email address of {escape(user.username)}.</p>"
        f"{_button(url, 'Confirm New Email')}"
        f"<p>This link will expire in {settings.EMAIL_VERIFICATION_EXPIRE_MINUTES} minutes.</p>"
        "<p><small>If you didn't request this change, please ignore this email.</small></p>"
    )
    safe_celery_delay(
        send_email_task, user.pending_email, "Verify your new email address", html
    )
