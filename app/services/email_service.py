"""
app/services/email_service.py

Purpose: Outbound email delivery

- Sends HTML email over SMTP
- Runs the blocking SMTP session in a worker thread
- Falls back to logging the message when SMTP is not configured
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, List, Optional, Union

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)


class EmailService:
    """Service for sending transactional email"""

    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.sender = settings.EMAIL_FROM

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    async def send(self, to: Union[str, Iterable[str]], subject: str, html: str) -> None:
        """
        Sends one email to one or more recipients.

        Raises:
            ExternalServiceError: If the SMTP exchange fails
        """
        recipients = _recipient_list(to)
        if not recipients:
            logger.debug(f"No recipients for '{subject}', skipping")
            return

        if not self.is_configured:
            logger.info(f"📧 [console] To: {', '.join(recipients)} | Subject: {subject}\n{html}")
            return

        try:
            await asyncio.to_thread(self._send_sync, recipients, subject, html)
            logger.info(f"📧 Email sent: {subject[:60]} → {len(recipients)} recipient(s)")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email sending failed: {e}")
            raise ExternalServiceError("Email could not be sent") from e

    def _send_sync(self, recipients: List[str], subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(html, "html"))

        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg, to_addrs=recipients)


def _recipient_list(to: Union[str, Iterable[str], None]) -> List[str]:
    if not to:
        return []
    if isinstance(to, str):
        return [to]
    return [address for address in to if address]


# Global email service instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
