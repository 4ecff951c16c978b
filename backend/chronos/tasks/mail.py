"""Celery tasks for outgoing mail."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from chronos.celery_app import celery_app
from chronos.core.config import settings

logger = logging.getLogger(__name__)


def _build_message(to: str, subject: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.EMAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content("This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")
    return message


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def send_email_task(self, to: str, subject: str, html: str) -> dict:
    """
    Send one HTML email through the configured SMTP server.

    Returns:
        dict: ``sent`` flag and recipient; delivery is skipped when no
        ``SMTP_HOST`` is configured.
    """
    if not settings.SMTP_HOST:
        logger.info("SMTP_HOST not configured, skipping email to %s: %s", to, subject)
        return {"sent": False, "to": to, "skipped": True}

    message = _build_message(to, subject, html)
    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Error sending email to %s: %s", to, exc, exc_info=True)
        raise self.retry(exc=exc)

    logger.info("Sent email to %s: %s", to, subject)
    return {"sent": True, "to": to}
