"""
Delivery Dispatcher

Sends one generated report through the requested channel(s).

GUARANTEES:
- Only the requested channels are attempted; the others stay absent from
  the result (absent is not the same as failed)
- Channels run concurrently and independently. Whatever one channel does,
  including raising, cannot affect the other or escape to the caller
- Unmet preconditions (no recipient, channel not configured, incomplete
  summary) become failure outcomes and the transport is never called
- Method names are matched case-insensitively. An unknown method attempts
  nothing and reports a failure for every channel
"""

import asyncio
from typing import Optional, Protocol, Union
from uuid import UUID

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.models.report import (
    DeliveryChannel,
    DeliveryMethod,
    DeliveryOutcome,
    DeliveryResults,
    Recipients,
    ReportBundle,
)
from src.reports.formatter import ReportFormatter
from src.validation import ReportRequestValidator, ValidationError


logger = structlog.get_logger(__name__)


class EmailChannel(Protocol):
    is_configured: bool

    async def send(
        self, recipients: str, text: str, html: Optional[str], subject: str
    ) -> DeliveryOutcome: ...


class SmsChannel(Protocol):
    is_configured: bool

    async def send(self, phone: str, text: str) -> DeliveryOutcome: ...


def email_subject(bundle: ReportBundle) -> str:
    return f"💰 Expense Report - {bundle.summary.period_label}"


class DeliveryDispatcher:
    """
    Fans a report bundle out to email and/or SMS.
    """

    def __init__(
        self,
        email_service: EmailChannel,
        sms_service: SmsChannel,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._email = email_service
        self._sms = sms_service
        self._audit_logger = audit_logger
        self._validator = ReportRequestValidator()

    async def dispatch(
        self,
        bundle: ReportBundle,
        method: Union[DeliveryMethod, str],
        recipients: Recipients,
        correlation_id: Optional[UUID] = None,
    ) -> DeliveryResults:
        """
        Deliver a report through the channels selected by method.

        Never raises for channel problems; every attempted channel gets an
        outcome in the result.
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            channels = self._validator.validate_method(method).channels
        except ValidationError as e:
            logger.warning(
                "delivery_method_invalid",
                method=str(method),
                report_id=str(bundle.report_id),
            )
            # No channel can be selected, so every channel reports the problem
            return DeliveryResults(**{
                channel.value: DeliveryOutcome.failure(str(e))
                for channel in DeliveryChannel
            })

        outcomes = await asyncio.gather(*(
            self._attempt(channel, bundle, recipients, correlation_id)
            for channel in channels
        ))

        results = DeliveryResults(**{
            channel.value: outcome for channel, outcome in zip(channels, outcomes)
        })
        logger.info(
            "report_dispatched",
            report_id=str(bundle.report_id),
            results=results.to_dict(),
        )
        return results

    async def _attempt(
        self,
        channel: DeliveryChannel,
        bundle: ReportBundle,
        recipients: Recipients,
        correlation_id: UUID,
    ) -> DeliveryOutcome:
        """Run one channel inside its own isolation boundary."""
        try:
            outcome = await self._send(channel, bundle, recipients)
        except Exception as e:
            logger.exception(
                "delivery_channel_raised",
                channel=channel.value,
                report_id=str(bundle.report_id),
            )
            outcome = DeliveryOutcome.failure(str(e) or type(e).__name__)
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service=channel.value,
                    error_message=outcome.error,
                    correlation_id=correlation_id,
                )

        if not outcome.success:
            logger.warning(
                "delivery_failed",
                channel=channel.value,
                report_id=str(bundle.report_id),
                error=outcome.error,
            )

        if self._audit_logger:
            await self._audit_logger.log_delivery(
                report_id=bundle.report_id,
                channel=channel.value,
                success=outcome.success,
                message_id=outcome.message_id,
                error_message=outcome.error,
                correlation_id=correlation_id,
            )
        return outcome

    async def _send(
        self,
        channel: DeliveryChannel,
        bundle: ReportBundle,
        recipients: Recipients,
    ) -> DeliveryOutcome:
        is_email = channel == DeliveryChannel.EMAIL
        if not (recipients.emails if is_email else recipients.phone):
            return DeliveryOutcome.failure(f"{channel.value} recipient not configured")

        service = self._email if is_email else self._sms
        if not service.is_configured:
            return DeliveryOutcome.failure(f"{channel.value} not configured")

        summary = bundle.summary
        if not getattr(summary, "start_date", None) or not getattr(summary, "end_date", None):
            return DeliveryOutcome.failure(f"{channel.value} report summary is incomplete")

        if is_email:
            return await self._email.send(
                recipients.email_list,
                bundle.report_text,
                bundle.report_html,
                email_subject(bundle),
            )

        text = bundle.short_summary or ReportFormatter().render_short_summary(summary)
        return await self._sms.send(recipients.phone, text)
