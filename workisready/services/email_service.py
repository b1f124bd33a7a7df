"""
workisready/services/email_service.py

Purpose: Outgoing email

- Verification email on registration (and on request)
- Password reset links
- SMTP delivery off the event loop
- Fire-and-forget: failures are logged, never raised to the request
"""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional, Set

from utils.constants import (
    PASSWORD_RESET_EMAIL_HTML,
    PASSWORD_RESET_EMAIL_SUBJECT,
    PASSWORD_RESET_EMAIL_TEXT,
    VERIFICATION_EMAIL_HTML,
    VERIFICATION_EMAIL_SUBJECT,
    VERIFICATION_EMAIL_TEXT,
)
from workisready.core.config import settings
from workisready.core.logging import get_logger

logger = get_logger(__name__)

# Keeps references to in-flight sends so they are not garbage collected
_pending: Set[asyncio.Task] = set()


def verification_url(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}{settings.API_PREFIX}/auth/verify-email/{token}"


def build_verification_email(name: str, email: str, token: str) -> EmailMessage:
    context = {
        "name": name,
        "verification_url": verification_url(token),
        "expiry_hours": settings.VERIFICATION_TOKEN_HOURS,
    }
    message = EmailMessage()
    message["Subject"] = VERIFICATION_EMAIL_SUBJECT
    message["From"] = settings.EMAIL_FROM
    message["To"] = email
    message.set_content(VERIFICATION_EMAIL_TEXT.format(**context))
    message.add_alternative(VERIFICATION_EMAIL_HTML.format(**context), subtype="html")
    return message


def reset_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/reset-password/{token}"


def build_password_reset_email(name: str, email: str, token: str) -> EmailMessage:
    context = {
        "name": name,
        "reset_url": reset_url(token),
        "expiry_minutes": settings.RESET_TOKEN_MINUTES,
    }
    message = EmailMessage()
    message["Subject"] = PASSWORD_RESET_EMAIL_SUBJECT
    message["From"] = settings.EMAIL_FROM
    message["To"] = email
    message.set_content(PASSWORD_RESET_EMAIL_TEXT.format(**context))
    message.add_alternative(PASSWORD_RESET_EMAIL_HTML.format(**context), subtype="html")
    return message


def _deliver(message: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
        server.send_message(message)


async def send_email(message: EmailMessage) -> bool:
    """
    Sends one message.

    Returns:
        True if the SMTP server accepted it
    """
    if not settings.email_enabled:
        logger.info(f"Email disabled, not sending '{message['Subject']}' to {message['To']}")
        return False
    try:
        await asyncio.to_thread(_deliver, message)
        logger.info(f"Email sent to {message['To']}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {message['To']}: {e}")
        return False


def send_in_background(message: EmailMessage) -> Optional[asyncio.Task]:
    """Schedules ``send_email`` without awaiting it."""
    try:
        task = asyncio.get_running_loop().create_task(send_email(message))
    except RuntimeError:
        logger.warning("No running event loop; email not sent")
        return None
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


class EmailService:
    async def send_verification(self, name: str, email: str, token: str) -> None:
        send_in_background(build_verification_email(name, email, token))

    async def send_password_reset(self, name: str, email: str, token: str) -> None:
        send_in_background(build_password_reset_email(name, email, token))
