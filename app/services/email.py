import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(ValueError):
    """Raised when SMTP settings are incomplete."""


def smtp_configured() -> bool:
    return all([
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        settings.smtp_from_email,
    ])


def _reset_instructions(reset_token: str) -> tuple[str, str]:
    """Plain-text and HTML bodies: a link when FRONTEND_URL is set, the raw token otherwise."""
    minutes = settings.password_reset_token_expire_minutes
    if settings.frontend_url:
        reset_link = f"{settings.frontend_url.rstrip('/')}/reset-password?token={reset_token}"
        action_text = f"Choose a new password here:\n{reset_link}"
        action_html = f'Choose a new password here: <a href="{reset_link}">{reset_link}</a>'
    else:
        action_text = f"Paste this code into the reset password form:\n{reset_token}"
        action_html = f"Paste this code into the reset password form: <code>{reset_token}</code>"

    paragraphs = [
        "We received a request to reset the password on your account.",
        f"It is valid for {minutes} minutes and works a single time.",
        "Once your password is changed, sign in again with your email and the new password.",
        "No request from you? Nothing changes until the reset is completed, so you can ignore this message.",
    ]
    text = "\n\n".join([paragraphs[0], action_text, *paragraphs[1:]]) + "\n"
    html = "<html><body>{}</body></html>".format(
        "".join(f"<p>{p}</p>" for p in [paragraphs[0], action_html, *paragraphs[1:]])
    )
    return text, html


async def send_password_reset_email(email: str, reset_token: str) -> None:
    """
    Send password reset email to user.

    Args:
        email: User's email address
        reset_token: Signed single-use reset token

    Raises:
        EmailNotConfiguredError: SMTP settings are missing.
    """
    if not smtp_configured():
        raise EmailNotConfiguredError("SMTP is not configured")

    message = MIMEMultipart("alternative")
    message["Subject"] = "Password Reset Request"
    message["From"] = settings.smtp_from_email
    message["To"] = email

    text, html = _reset_instructions(reset_token)
    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    send_kwargs = {
        "hostname": settings.smtp_host,
        "port": settings.smtp_port,
        "username": settings.smtp_user,
        "password": settings.smtp_password,
    }

    if settings.smtp_use_tls:
        # Port 465 uses direct TLS, everything else STARTTLS
        if settings.smtp_port == 465:
            send_kwargs["use_tls"] = True
        else:
            send_kwargs["start_tls"] = True

    await aiosmtplib.send(message, **send_kwargs)
    logger.info("Password reset email sent")
