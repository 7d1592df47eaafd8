"""
Tests for Expense Reports

Test strategy:
1. Unit tests for individual components (models, aggregation, rendering)
2. Integration tests for flows (with mocked external services)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from src.models.transaction import (
    DEFAULT_PAYMENT_MODES,
    PaymentMode,
    Transaction,
    TransactionType,
    UserProfile,
)
from src.models.report import (
    DateRange,
    DeliveryChannel,
    DeliveryMethod,
    DeliveryOutcome,
    DeliveryResults,
    Recipients,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModels:
    """Tests for transaction and user models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        tx = Transaction(
            id="t1",
            user_id="u1",
            type="debit",
            amount=Decimal("120.50"),
            mode="cash",
            mode_name="  Cash  ",
            item="Vegetables",
            date=date(2024, 3, 1),
        )
        assert tx.type == TransactionType.DEBIT
        assert tx.mode_name == "Cash"
        assert tx.signed_amount == Decimal("-120.50")
        assert tx.is_credit is False

    def test_transaction_rejects_negative_amount(self):
        """Sign comes from the type, never from the amount."""
        with pytest.raises(ValidationError):
            Transaction(
                id="t1",
                user_id="u1",
                type="credit",
                amount=Decimal("-1"),
                mode="cash",
                mode_name="Cash",
                date=date(2024, 3, 1),
            )

    def test_transaction_is_immutable(self):
        tx = Transaction(
            id="t1",
            user_id="u1",
            type="credit",
            amount=Decimal("1"),
            mode="cash",
            mode_name="Cash",
            date=date(2024, 3, 1),
        )
        with pytest.raises(ValidationError):
            tx.amount = Decimal("2")

    def test_payment_modes_from_plain_names(self):
        """Plain-name lists get positional ids."""
        user = UserProfile(id="u1", payment_modes=["Cash", "  ", "SBI"])
        assert user.mode_ids == ["mode1", "mode3"]
        assert user.mode_labels == {"mode1": "Cash", "mode3": "SBI"}

    def test_payment_modes_from_objects(self):
        user = UserProfile(
            id="u1",
            payment_modes=[{"id": "hdfc", "name": "HDFC"}, {"name": "Wallet"}],
        )
        assert user.payment_modes == [
            PaymentMode(id="hdfc", name="HDFC"),
            PaymentMode(id="mode2", name="Wallet"),
        ]

    def test_empty_payment_modes_fall_back_to_default(self):
        user = UserProfile(id="u1", payment_modes=[])
        assert user.mode_ids == [m["id"] for m in DEFAULT_PAYMENT_MODES]

    def test_too_many_payment_modes_rejected(self):
        with pytest.raises(ValidationError):
            UserProfile(id="u1", payment_modes=[f"Mode {i}" for i in range(6)])

    def test_blank_contacts_become_none(self):
        user = UserProfile(id="u1", contact_email="", contact_email2="b@x.com", contact_phone=" ")
        assert user.contact_email is None
        assert user.contact_phone is None
        assert user.report_emails == ["b@x.com"]


class TestReportModels:
    """Tests for date ranges and delivery results."""

    def test_date_range_is_inclusive(self):
        date_range = DateRange(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
        assert date_range.contains(date(2024, 3, 1))
        assert date_range.contains(date(2024, 3, 31))
        assert not date_range.contains(date(2024, 2, 29))
        assert not date_range.contains(date(2024, 4, 1))

    def test_date_range_day_bounds(self):
        date_range = DateRange(start_date=date(2024, 3, 1), end_date=date(2024, 3, 1))
        assert date_range.start_of_day == datetime(2024, 3, 1, 0, 0, 0)
        assert date_range.end_of_day == datetime(2024, 3, 1, 23, 59, 59, 999999)

    def test_date_range_rejects_reversed_bounds(self):
        with pytest.raises(ValidationError):
            DateRange(start_date=date(2024, 3, 2), end_date=date(2024, 3, 1))

    def test_delivery_method_channels(self):
        assert DeliveryMethod.BOTH.channels == [DeliveryChannel.SMS, DeliveryChannel.EMAIL]
        assert DeliveryMethod.EMAIL.channels == [DeliveryChannel.EMAIL]

    def test_delivery_results_absent_is_not_failed(self):
        results = DeliveryResults(email=DeliveryOutcome.delivered("id-1"))
        assert results.attempted == [DeliveryChannel.EMAIL]
        assert results.all_succeeded is True
        assert results.to_dict() == {"email": {"success": True, "message_id": "id-1"}}

    def test_delivery_results_with_failure(self):
        results = DeliveryResults(
            email=DeliveryOutcome.delivered(),
            sms=DeliveryOutcome.failure("boom"),
        )
        assert results.all_succeeded is False

    def test_recipients_from_comma_string(self):
        recipients = Recipients(emails="a@x.com, ,b@x.com,a@x.com", phone="  ")
        assert recipients.emails == ["a@x.com", "b@x.com"]
        assert recipients.email_list == "a@x.com, b@x.com"
        assert recipients.phone is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.REPORT_REQUESTED,
            description="Report requested",
        )
        assert event.event_type == AuditEventType.REPORT_REQUESTED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            description="Report generated",
            details={"period": "2024-03-01 to 2024-03-01", "transaction_count": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "report_generated"
        assert log_dict["details"]["transaction_count"] == 3

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.REPORT_REQUESTED,
            description="Report requested",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "report_requested"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_delivery_failed(self):
        """Test AuditEventBuilder.delivery_failed."""
        correlation_id = uuid4()
        report_id = uuid4()

        event = AuditEventBuilder.delivery_failed(
            report_id=report_id,
            channel="email",
            error_message="SMTP error",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.DELIVERY_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == str(report_id)
        assert event.correlation_id == correlation_id
        assert event.details == {"channel": "email"}

    def test_audit_event_builder_scheduled_run_completed(self):
        """Failures in a scheduled run raise the severity."""
        ok = AuditEventBuilder.scheduled_run_completed(2, 0, uuid4())
        partial = AuditEventBuilder.scheduled_run_completed(1, 1, uuid4())

        assert ok.severity == AuditSeverity.INFO
        assert partial.severity == AuditSeverity.WARNING
        assert partial.is_user_action is False
