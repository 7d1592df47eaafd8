"""
Audit Models for Expense Reports

Every report run and every delivery attempt is logged for audit purposes.
The scheduler has no user-visible channel, so the audit trail is the only
place its failures can be observed.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Report generation
    REPORT_REQUESTED = "report_requested"
    REPORT_GENERATED = "report_generated"
    REPORT_GENERATION_FAILED = "report_generation_failed"

    # Delivery
    DELIVERY_SUCCEEDED = "delivery_succeeded"
    DELIVERY_FAILED = "delivery_failed"

    # Scheduler
    SCHEDULED_RUN_STARTED = "scheduled_run_started"
    SCHEDULED_RUN_COMPLETED = "scheduled_run_completed"
    SCHEDULED_RUN_SKIPPED = "scheduled_run_skipped"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'report', 'user', 'schedule')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., generation and delivery of one report)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action (as opposed to the scheduler)?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.report_generated(report_id, user_id, ...)
        event = AuditEventBuilder.delivery_failed(report_id, "email", error, ...)
    """

    @staticmethod
    def report_requested(
        user_id: str,
        period: str,
        correlation_id: UUID,
        is_user_action: bool = True,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_REQUESTED,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Report requested for {period}",
            details={"period": period},
            is_user_action=is_user_action,
        )

    @staticmethod
    def report_generated(
        report_id: UUID,
        user_id: str,
        period: str,
        transaction_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            entity_type="report",
            entity_id=str(report_id),
            correlation_id=correlation_id,
            description=f"Report generated for {period} with {transaction_count} transactions",
            details={
                "user_id": user_id,
                "period": period,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def report_generation_failed(
        user_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Report generation failed",
            error_message=error_message,
        )

    @staticmethod
    def delivery_succeeded(
        report_id: UUID,
        channel: str,
        message_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELIVERY_SUCCEEDED,
            entity_type="report",
            entity_id=str(report_id),
            correlation_id=correlation_id,
            description=f"Report delivered via {channel}",
            details={
                "channel": channel,
                "message_id": message_id,
            },
        )

    @staticmethod
    def delivery_failed(
        report_id: UUID,
        channel: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELIVERY_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="report",
            entity_id=str(report_id),
            correlation_id=correlation_id,
            description=f"Report delivery via {channel} failed",
            details={"channel": channel},
            error_message=error_message,
        )

    @staticmethod
    def scheduled_run_started(
        schedule: str,
        user_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULED_RUN_STARTED,
            entity_type="schedule",
            correlation_id=correlation_id,
            description=f"Scheduled report run started for {user_count} users",
            details={
                "schedule": schedule,
                "user_count": user_count,
            },
        )

    @staticmethod
    def scheduled_run_completed(
        succeeded: int,
        failed: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULED_RUN_COMPLETED,
            severity=AuditSeverity.INFO if failed == 0 else AuditSeverity.WARNING,
            entity_type="schedule",
            correlation_id=correlation_id,
            description=f"Scheduled report run finished: {succeeded} ok, {failed} failed",
            details={
                "succeeded": succeeded,
                "failed": failed,
            },
        )

    @staticmethod
    def scheduled_run_skipped(
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULED_RUN_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type="schedule",
            correlation_id=correlation_id,
            description=f"Scheduled report run skipped: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
