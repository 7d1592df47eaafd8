"""
Main Orchestrator for Expense Reports

This module ties together all the components and defines the
end-to-end flows for:
1. Generate (dates -> validated range -> report bundle)
2. Send (dates + method -> report bundle -> per-channel delivery results)

Both the on-demand callers (UI, API) and the scheduler go through here,
so every report run gets the same validation, locking and audit trail.

DESIGN DECISION: Generate + deliver for one user is serialized with a
per-user lock. Overlapping scheduled and on-demand runs queue up instead of
racing on the same date range.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Optional, Union
from uuid import UUID

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.config import get_settings
from src.config.settings import EmailSettings, RecipientSettings
from src.delivery import DeliveryDispatcher
from src.models.report import (
    DeliveryMethod,
    Recipients,
    ReportBundle,
    SendReportResult,
)
from src.models.transaction import UserProfile
from src.reports import DataError, ReportFormatter, ReportGenerator
from src.services.notifications import SmtpEmailService, TwilioSmsService
from src.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
    InMemoryStorage,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from src.validation import ReportRequestValidator


logger = structlog.get_logger(__name__)

DateInput = Union[date, str, None]


def resolve_recipients(
    user: UserProfile,
    defaults: Optional[RecipientSettings] = None,
    email_settings: Optional[EmailSettings] = None,
) -> Recipients:
    """
    Work out where a user's report goes.

    The user's own report contacts win. Process-wide defaults fill in only
    when the user has none for that channel; the SMTP login is the last
    resort for email.
    """
    emails = user.report_emails
    if not emails and defaults:
        emails = [e for e in (defaults.recipient_email, defaults.secondary_email) if e]
    if not emails and email_settings and email_settings.user:
        emails = [email_settings.user]

    phone = user.contact_phone or (defaults.recipient_phone if defaults else None)
    return Recipients(emails=emails, phone=phone)


class ReportFlow:
    """
    Orchestrates report generation and delivery for one user at a time.
    """

    def __init__(
        self,
        generator: ReportGenerator,
        dispatcher: DeliveryDispatcher,
        user_storage: UserStorageInterface,
        recipient_defaults: Optional[RecipientSettings] = None,
        email_settings: Optional[EmailSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._generator = generator
        self._dispatcher = dispatcher
        self._users = user_storage
        self._recipient_defaults = recipient_defaults
        self._email_settings = email_settings
        self._audit_logger = audit_logger
        self._validator = ReportRequestValidator()
        self._user_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @property
    def generator(self) -> ReportGenerator:
        return self._generator

    async def list_users(self) -> list[UserProfile]:
        return await self._users.list_users()

    async def generate_report(
        self,
        user_id: str,
        start_date: DateInput,
        end_date: DateInput,
        correlation_id: Optional[UUID] = None,
    ) -> ReportBundle:
        """
        Generate a report without sending it.

        Raises:
            ValidationError: If the dates are missing or invalid
            DataError: If the user or their transactions cannot be loaded
        """
        correlation_id = correlation_id or create_correlation_id()
        date_range = self._validator.validate_date_range(start_date, end_date)

        if self._audit_logger:
            await self._audit_logger.log_report_requested(
                user_id=user_id,
                period=str(date_range),
                correlation_id=correlation_id,
            )

        return await self._generator.generate(
            user_id,
            date_range.start_date,
            date_range.end_date,
            correlation_id=correlation_id,
        )

    async def send_report(
        self,
        user_id: str,
        start_date: DateInput,
        end_date: DateInput,
        method: Union[DeliveryMethod, str],
        correlation_id: Optional[UUID] = None,
        is_user_action: bool = True,
    ) -> SendReportResult:
        """
        Generate a report and deliver it.

        Generation failures propagate (no partial report is sent). Delivery
        failures are reported per channel in the result.

        Raises:
            ValidationError: If the dates or method are invalid
            DataError: If generation fails
        """
        correlation_id = correlation_id or create_correlation_id()
        date_range = self._validator.validate_date_range(start_date, end_date)
        method = self._validator.validate_method(method)

        if self._audit_logger:
            await self._audit_logger.log_report_requested(
                user_id=user_id,
                period=str(date_range),
                correlation_id=correlation_id,
                is_user_action=is_user_action,
            )

        async with self._user_lock(user_id):
            bundle = await self._generator.generate(
                user_id,
                date_range.start_date,
                date_range.end_date,
                correlation_id=correlation_id,
            )
            recipients = await self._recipients_for(user_id)
            results = await self._dispatcher.dispatch(
                bundle,
                method,
                recipients,
                correlation_id=correlation_id,
            )

        return SendReportResult(
            report_id=bundle.report_id,
            summary=bundle.summary,
            results=results,
        )

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """
        Hold the user's lock for one run.

        The lock is dropped once no run holds or waits on it, so only users
        with runs in flight keep an entry.
        """
        lock = self._user_locks.setdefault(user_id, asyncio.Lock())
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[user_id] -= 1
            if not self._lock_holders[user_id]:
                del self._lock_holders[user_id]
                del self._user_locks[user_id]

    async def _recipients_for(self, user_id: str) -> Recipients:
        try:
            user = await self._users.find_user(user_id)
        except StorageError as e:
            raise DataError(f"Failed to load user {user_id}: {e}") from e
        if user is None:
            raise DataError(f"User not found: {user_id}")
        return resolve_recipients(
            user,
            defaults=self._recipient_defaults,
            email_settings=self._email_settings,
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[ReportFlow, "ReportScheduler", Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run against empty in-memory storage.

    Returns:
        (report_flow, scheduler, sheets_client)
    """
    from src.scheduler import ReportScheduler

    settings = get_settings()

    sheets_client = None
    transaction_storage: TransactionStorageInterface
    user_storage: UserStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            user_storage = GoogleSheetsUserStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue with in-memory storage
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            use_storage = False

    if not use_storage:
        memory = InMemoryStorage()
        transaction_storage = memory
        user_storage = memory
        audit_storage = None  # Local-only audit logging

    audit_logger = AuditLogger(audit_storage)

    generator = ReportGenerator(
        transaction_storage=transaction_storage,
        user_storage=user_storage,
        formatter=ReportFormatter(currency_symbol=settings.app.currency_symbol),
        audit_logger=audit_logger,
    )

    email_settings = settings.email
    dispatcher = DeliveryDispatcher(
        email_service=SmtpEmailService(email_settings),
        sms_service=TwilioSmsService(settings.twilio),
        audit_logger=audit_logger,
    )

    report_flow = ReportFlow(
        generator=generator,
        dispatcher=dispatcher,
        user_storage=user_storage,
        recipient_defaults=settings.recipients,
        email_settings=email_settings,
        audit_logger=audit_logger,
    )

    scheduler = ReportScheduler(
        report_flow,
        settings=settings.scheduler,
        audit_logger=audit_logger,
    )

    return report_flow, scheduler, sheets_client
