"""
Outbound email delivery.

Two backends, selected by ``BO_EMAIL_BACKEND``:
- ``smtp``: delivers through the configured SMTP relay with aiosmtplib
- ``console``: logs the message instead of sending it (local development)

``send_email`` raises on delivery failure; callers decide how to report it.
"""

from __future__ import annotations

from email.message import EmailMessage

import aiosmtplib
import structlog

from backoffice.core.config import get_settings

log = structlog.get_logger()


def build_message(to: str, subject: str, html: str, sender: str) -> EmailMessage:
    """Build a multipart message with a plain-text fallback and an HTML part."""
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    message.set_content("This message requires an HTML-capable mail client.")
    message.add_alternative(html, subtype="html")
    return message


async def send_email(to: str, subject: str, html: str) -> None:
    """Send an HTML email to a single recipient."""
    settings = get_settings()

    if settings.email_backend == "console":
        log.info("email.console", to=to, subject=subject, html=html)
        return

    message = build_message(to, subject, html, settings.email_from)
    await aiosmtplib.send(
        message,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username or None,
        password=settings.smtp_password or None,
        start_tls=settings.smtp_start_tls,
        timeout=settings.smtp_timeout_seconds,
    )
    log.info("email.sent", to=to, subject=subject)
