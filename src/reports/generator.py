"""
Report Generator

Flow for one report:
1. Establish the period (inclusive, whole days)
2. Load the user (payment modes, display name)
3. Query the user's transactions in the period, newest first
4. Aggregate against the user's payment modes
5. Render text, HTML and SMS summary
6. Return a ReportBundle

Generation is all-or-nothing: any storage failure aborts the report with a
DataError. No partial report is ever returned.
"""

from datetime import date, timedelta
from typing import Optional, Union
from uuid import UUID

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.models.report import DateRange, ReportBundle, ReportInterval, ReportSummary
from src.reports.aggregator import aggregate_transactions
from src.reports.formatter import ReportFormatter
from src.services.storage import (
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from src.validation import ReportRequestValidator


logger = structlog.get_logger(__name__)


class ReportGenerationError(Exception):
    """Base exception for report generation."""
    pass


class DataError(ReportGenerationError):
    """Storage failed, or data the report needs does not exist."""
    pass


def _is_blank(value: Union[date, str, None]) -> bool:
    """None and whitespace-only strings both mean the date was not given."""
    return value is None or (isinstance(value, str) and not value.strip())


def resolve_interval(
    interval: Union[ReportInterval, str],
    today: Optional[date] = None,
) -> DateRange:
    """
    Resolve a relative interval keyword to an absolute date range ending today.

    daily   -> today only
    weekly  -> the most recent Sunday through today
    monthly -> the 1st of the current month through today

    Unknown keywords fall back to daily with a warning.
    """
    today = today or date.today()

    try:
        interval = ReportInterval(interval)
    except ValueError:
        logger.warning(
            "unknown_report_interval",
            interval=str(interval),
            fallback=ReportInterval.DAILY.value,
        )
        interval = ReportInterval.DAILY

    if interval == ReportInterval.WEEKLY:
        # date.weekday(): Monday=0 ... Sunday=6
        days_since_sunday = (today.weekday() + 1) % 7
        start = today - timedelta(days=days_since_sunday)
    elif interval == ReportInterval.MONTHLY:
        start = today.replace(day=1)
    else:
        start = today

    return DateRange(start_date=start, end_date=today)


class ReportGenerator:
    """
    Builds report bundles from stored transactions.

    Holds no per-request state; one instance serves every user.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        user_storage: UserStorageInterface,
        formatter: Optional[ReportFormatter] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transactions = transaction_storage
        self._users = user_storage
        self._formatter = formatter or ReportFormatter()
        self._validator = ReportRequestValidator()
        self._audit_logger = audit_logger

    async def generate(
        self,
        user_id: str,
        start_date: Union[date, str, None],
        end_date: Union[date, str, None],
        correlation_id: Optional[UUID] = None,
    ) -> ReportBundle:
        """
        Generate a report for a user over an inclusive date range.

        Returns:
            ReportBundle whose summary always carries start and end dates

        Raises:
            DataError: If the period cannot be established, the user does
                not exist, or storage fails
            ValidationError: If a date is malformed or the range is reversed
        """
        correlation_id = correlation_id or create_correlation_id()
        log = logger.bind(user_id=user_id, correlation_id=str(correlation_id))

        try:
            if _is_blank(start_date) or _is_blank(end_date):
                raise DataError(
                    "Report period could not be established: "
                    "start and end dates are required"
                )
            date_range = self._validator.validate_date_range(start_date, end_date)

            log.info("report_generation_started", period=str(date_range))
            bundle = await self._build(user_id, date_range)
        except DataError as e:
            log.error("report_generation_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_report_generation_failed(
                    user_id=user_id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        log.info(
            "report_generated",
            report_id=str(bundle.report_id),
            transaction_count=bundle.summary.transaction_count,
        )
        if self._audit_logger:
            await self._audit_logger.log_report_generated(
                report_id=bundle.report_id,
                user_id=user_id,
                period=bundle.summary.period_label,
                transaction_count=bundle.summary.transaction_count,
                correlation_id=correlation_id,
            )
        return bundle

    async def generate_for_interval(
        self,
        user_id: str,
        interval: Union[ReportInterval, str],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReportBundle:
        """Generate a report for a relative interval (daily, weekly, monthly)."""
        date_range = resolve_interval(interval, today=today)
        return await self.generate(
            user_id,
            date_range.start_date,
            date_range.end_date,
            correlation_id=correlation_id,
        )

    async def _build(self, user_id: str, date_range: DateRange) -> ReportBundle:
        try:
            user = await self._users.find_user(user_id)
        except StorageError as e:
            raise DataError(f"Failed to load user {user_id}: {e}") from e
        if user is None:
            raise DataError(f"User not found: {user_id}")

        try:
            transactions = await self._transactions.find_transactions(
                user_id, date_range
            )
        except StorageError as e:
            raise DataError(f"Failed to query transactions for {user_id}: {e}") from e

        aggregation = aggregate_transactions(transactions, user.mode_ids)
        summary = ReportSummary.from_aggregation(
            aggregation,
            user_id=user_id,
            date_range=date_range,
            account_labels=user.mode_labels,
        )

        report_text = self._formatter.render_text(
            summary, transactions, user_name=user.name
        )
        return ReportBundle(
            report_text=report_text,
            report_html=self._formatter.render_html(summary, report_text),
            short_summary=self._formatter.render_short_summary(summary),
            summary=summary,
        )
