"""Notification channel services package."""

from src.services.notifications.base import (
    ConfigurationError,
    NotificationError,
    TransportError,
)
from src.services.notifications.email_service import SmtpEmailService
from src.services.notifications.sms_service import TwilioSmsService

__all__ = [
    "ConfigurationError",
    "NotificationError",
    "SmtpEmailService",
    "TransportError",
    "TwilioSmsService",
]
