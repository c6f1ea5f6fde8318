"""Outbound email delivery."""

import aiosmtplib
import structlog

from authserver.config import get_settings

logger = structlog.get_logger(__name__)


class EmailService:
    """Best-effort SMTP sender."""

    async def send_email(self, to_email: str, subject: str, text: str) -> bool:
        """Send a plain-text email.

        Returns True on success, False on failure or when email is disabled.
        """
        settings = get_settings()

        if not settings.email_enabled:
            logger.info("email_disabled", recipient_email=to_email, subject=subject)
            return False

        message = (
            f"From: {settings.email_from}\r\n"
            f"To: {to_email}\r\n"
            f"Subject: {subject}\r\n"
            f"Content-Type: text/plain; charset=utf-8\r\n"
            f"\r\n"
            f"{text}"
        )

        try:
            await aiosmtplib.send(
                message,
                sender=settings.email_from,
                recipients=[to_email],
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username or None,
                password=settings.smtp_password or None,
                use_tls=settings.smtp_use_tls,
            )
        except Exception as e:
            logger.error("email_failed", recipient_email=to_email, subject=subject, error=str(e))
            return False

        logger.info("email_sent", recipient_email=to_email, subject=subject)
        return True
