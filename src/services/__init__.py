"""Services package."""

from src.services.notifications import (
    ConfigurationError,
    NotificationError,
    SmtpEmailService,
    TransportError,
    TwilioSmsService,
)
from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
    InMemoryStorage,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)

__all__ = [
    # Notification services
    "ConfigurationError",
    "NotificationError",
    "SmtpEmailService",
    "TransportError",
    "TwilioSmsService",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
    "GoogleSheetsUserStorage",
    "InMemoryStorage",
    "StorageError",
    "TransactionStorageInterface",
    "UserStorageInterface",
]
