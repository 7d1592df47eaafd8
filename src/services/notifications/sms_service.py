"""
SMS Channel using Twilio

Sends the short report summary as a single text message. The text is
expected to be pre-shortened by the report formatter.
"""

import asyncio
from typing import Optional

import structlog
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from src.config import get_settings
from src.config.settings import TwilioSettings
from src.models.report import DeliveryOutcome
from src.services.notifications.base import ConfigurationError, TransportError


logger = structlog.get_logger(__name__)


class TwilioSmsService:
    """
    SMS transport.

    The Twilio SDK is synchronous, so sends run in a worker thread.
    """

    channel = "sms"

    def __init__(self, settings: Optional[TwilioSettings] = None):
        self._settings = settings or get_settings().twilio
        self._client: Optional[Client] = None

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _get_client(self) -> Client:
        """Get or create the Twilio client."""
        if not self.is_configured:
            raise ConfigurationError(
                "Twilio not configured: TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN "
                "and TWILIO_PHONE_NUMBER are required"
            )
        if self._client is None:
            self._client = Client(
                self._settings.account_sid,
                self._settings.auth_token,
            )
        return self._client

    def _deliver(self, phone: str, text: str) -> str:
        """
        Send one message.

        Returns:
            The Twilio message SID

        Raises:
            ConfigurationError: If credentials are missing
            TransportError: If Twilio rejects the message
        """
        client = self._get_client()
        try:
            message = client.messages.create(
                body=text,
                from_=self._settings.phone_number,
                to=phone,
            )
        except TwilioException as e:
            raise TransportError(f"Twilio error: {e}") from e
        return message.sid

    async def send(self, phone: str, text: str) -> DeliveryOutcome:
        """Send a text message to one phone number."""
        if not self.is_configured:
            logger.warning("sms_not_configured")
            return DeliveryOutcome.failure("SMS not configured")

        if not phone or not phone.strip():
            logger.warning("sms_no_recipient")
            return DeliveryOutcome.failure("No phone number provided")

        try:
            sid = await asyncio.to_thread(self._deliver, phone.strip(), text)
        except (ConfigurationError, TransportError) as e:
            logger.error("sms_send_failed", phone=phone, error=str(e))
            return DeliveryOutcome.failure(str(e))

        logger.info("sms_sent", phone=phone, message_id=sid)
        return DeliveryOutcome.delivered(sid)
