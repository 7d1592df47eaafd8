"""
Email Channel using SMTP

Sends the report as a multipart message: the plain-text report plus the
HTML rendering. Works with any SMTP server; the defaults target Gmail with
an app password.

Preconditions (missing credentials, empty recipient list) come back as
failure outcomes without opening a connection.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import get_settings
from src.config.settings import EmailSettings
from src.models.report import DeliveryOutcome
from src.services.notifications.base import ConfigurationError, TransportError


logger = structlog.get_logger(__name__)


class SmtpEmailService:
    """
    Email transport.

    The SMTP conversation is blocking, so it runs in a worker thread.
    """

    channel = "email"

    def __init__(self, settings: Optional[EmailSettings] = None):
        self._settings = settings or get_settings().email

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _build_message(
        self,
        recipients: str,
        subject: str,
        text: str,
        html: Optional[str],
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._settings.user
        message["To"] = recipients
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    @retry(
        retry=retry_if_exception_type(smtplib.SMTPServerDisconnected),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _open_and_send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(
            self._settings.smtp_host,
            self._settings.smtp_port,
            timeout=self._settings.timeout_seconds,
        ) as smtp:
            if self._settings.use_tls:
                smtp.starttls()
            smtp.login(self._settings.user, self._settings.password)
            smtp.send_message(message)

    def _deliver(self, message: EmailMessage) -> str:
        """
        Send a prepared message.

        Returns:
            The Message-ID header of the sent message

        Raises:
            ConfigurationError: If credentials are missing
            TransportError: If the SMTP server refuses or the connection fails
        """
        if not self.is_configured:
            raise ConfigurationError("Email not configured: EMAIL_USER and EMAIL_PASSWORD are required")
        try:
            self._open_and_send(message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP error: {e}") from e
        return message["Message-ID"]

    async def send(
        self,
        recipients: str,
        text: str,
        html: Optional[str],
        subject: str,
    ) -> DeliveryOutcome:
        """
        Send a report email.

        Args:
            recipients: Comma-joined recipient addresses
            text: Plain-text report
            html: HTML rendering of the report
            subject: Subject line
        """
        if not self.is_configured:
            logger.warning("email_not_configured")
            return DeliveryOutcome.failure("Email not configured")

        if not recipients or not recipients.strip():
            logger.warning("email_no_recipients")
            return DeliveryOutcome.failure("No email recipients provided")

        message = self._build_message(recipients, subject, text, html)
        try:
            message_id = await asyncio.to_thread(self._deliver, message)
        except (ConfigurationError, TransportError) as e:
            logger.error("email_send_failed", recipients=recipients, error=str(e))
            return DeliveryOutcome.failure(str(e))

        logger.info("email_sent", recipients=recipients, message_id=message_id)
        return DeliveryOutcome.delivered(message_id)
