"""
Data Models Package

This package contains all Pydantic models used by the expense report system.
All data flowing through the system must conform to these schemas.
"""

from src.models.transaction import (
    DEFAULT_PAYMENT_MODES,
    MAX_PAYMENT_MODES,
    PaymentMode,
    Transaction,
    TransactionType,
    UserProfile,
)
from src.models.report import (
    AggregationResult,
    DateRange,
    DeliveryChannel,
    DeliveryMethod,
    DeliveryOutcome,
    DeliveryResults,
    Recipients,
    ReportBundle,
    ReportInterval,
    ReportSummary,
    SendReportResult,
    ValidationIssue,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "DEFAULT_PAYMENT_MODES",
    "MAX_PAYMENT_MODES",
    "PaymentMode",
    "Transaction",
    "TransactionType",
    "UserProfile",
    # Report models
    "AggregationResult",
    "DateRange",
    "DeliveryChannel",
    "DeliveryMethod",
    "DeliveryOutcome",
    "DeliveryResults",
    "Recipients",
    "ReportBundle",
    "ReportInterval",
    "ReportSummary",
    "SendReportResult",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
