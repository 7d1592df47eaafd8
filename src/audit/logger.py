"""
Audit Logger

DESIGN DECISION: Every report run and delivery attempt is logged.
Scheduled runs have no caller to report back to, so this is where their
outcome becomes visible.

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash a report run if logging fails)
- Supports correlation IDs to tie generation and delivery of one report together
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_report_requested(
        self,
        user_id: str,
        period: str,
        correlation_id: UUID,
        is_user_action: bool = True,
    ) -> None:
        """Log that a report run was requested."""
        event = AuditEventBuilder.report_requested(
            user_id=user_id,
            period=period,
            correlation_id=correlation_id,
            is_user_action=is_user_action,
        )
        await self.log(event)

    async def log_report_generated(
        self,
        report_id: UUID,
        user_id: str,
        period: str,
        transaction_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a successful generation."""
        event = AuditEventBuilder.report_generated(
            report_id=report_id,
            user_id=user_id,
            period=period,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_generation_failed(
        self,
        user_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed generation."""
        event = AuditEventBuilder.report_generation_failed(
            user_id=user_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_delivery(
        self,
        report_id: UUID,
        channel: str,
        success: bool,
        message_id: Optional[str],
        error_message: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log the outcome of one channel attempt."""
        if success:
            event = AuditEventBuilder.delivery_succeeded(
                report_id=report_id,
                channel=channel,
                message_id=message_id,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.delivery_failed(
                report_id=report_id,
                channel=channel,
                error_message=error_message or "unknown error",
                correlation_id=correlation_id,
            )
        await self.log(event)

    async def log_scheduled_run_started(
        self,
        schedule: str,
        user_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.scheduled_run_started(
            schedule=schedule,
            user_count=user_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_scheduled_run_completed(
        self,
        succeeded: int,
        failed: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.scheduled_run_completed(
            succeeded=succeeded,
            failed=failed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_scheduled_run_skipped(
        self,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.scheduled_run_skipped(
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a report run (on-demand request or scheduler
    firing) and pass it through generation and delivery.
    """
    return uuid4()
