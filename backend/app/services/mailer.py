"""Outbound mail for deletion-password reset links."""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

import aiosmtplib
import structlog

from app.core.config import settings

logger = structlog.get_logger(__name__)


def reset_link(token: str) -> str:
    base = settings.FRONTEND_URL.rstrip("/")
    return f"{base}/reset-deletion-password?{urlencode({'token': token})}"


def render_reset_email(token: str) -> tuple[str, str, str]:
    """Return (subject, html_body, text_body)."""
    url = reset_link(token)
    minutes = settings.RESET_TOKEN_TTL_MINUTES
    subject = "3 Patti Leaderboard - Password Reset"
    html = (
        "<h2>Password Reset Request</h2>"
        "<p>You have requested to reset your deletion password for the 3 Patti Leaderboard application.</p>"
        f"<p>Click the link below to reset your password (valid for {minutes} minutes):</p>"
        f'<p><a href="{url}">Reset Password</a></p>'
        "<p>If you didn't request this reset, you can safely ignore this email.</p>"
    )
    text = (
        "You have requested to reset your deletion password.\n"
        f"Open this link within {minutes} minutes: {url}\n"
        "If you didn't request this reset, you can safely ignore this email.\n"
    )
    return subject, html, text


async def send_reset_email(to_email: str, token: str) -> bool:
    subject, html, text = render_reset_email(token)

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
    except aiosmtplib.SMTPException as exc:
        logger.error("reset_email_failed", to=to_email, error=str(exc))
        return False
    logger.info("reset_email_sent", to=to_email)
    return True
