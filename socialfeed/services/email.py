from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from socialfeed.config import settings

LOGGER = logging.getLogger(__name__)


class EmailSendError(RuntimeError):
    pass


def send_passcode_email(to_email: str, code: str) -> None:
    sender = settings.email_from
    if not sender or not settings.smtp_host:
        raise EmailSendError("Passcode email sender is not configured")

    message = build_message(
        sender,
        to_email,
        settings.otp_email_subject,
        build_email_body(code, settings.otp_ttl_seconds),
    )
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as conn:
            conn.ehlo()
            conn.starttls()
            conn.ehlo()
            if settings.smtp_user:
                conn.login(settings.smtp_user, settings.smtp_pass)
            conn.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        LOGGER.error("SMTP error to=%s: %s", to_email, exc)
        raise EmailSendError("Failed to send passcode email") from exc
    LOGGER.info("Sent passcode email to=%s", to_email)


def build_email_body(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return (
        f"Your verification code is {code}.\n\n"
        f"It expires in {minutes} minute(s).\n\n"
        "If you did not request this code, you can ignore this email."
    )


def build_message(sender: str, recipient: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content(body)
    return message
