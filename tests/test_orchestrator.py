"""Integration tests for the report flows (storage in memory, transports mocked)."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from src.config.settings import EmailSettings, RecipientSettings
from src.models.audit import AuditEventType
from src.models.transaction import UserProfile
from src.orchestrator import ReportFlow, resolve_recipients
from src.reports import DataError
from src.validation import ValidationError


@pytest.fixture
def recipient_defaults():
    return RecipientSettings(
        recipient_email="family@example.com",
        secondary_email="",
        RECIPIENT_PHONE="+919811111111",
    )


@pytest.fixture
def report_flow(generator, dispatcher, storage, recipient_defaults, audit_logger):
    return ReportFlow(
        generator=generator,
        dispatcher=dispatcher,
        user_storage=storage,
        recipient_defaults=recipient_defaults,
        audit_logger=audit_logger,
    )


class TestResolveRecipients:

    def test_user_contacts_win(self, recipient_defaults):
        user = UserProfile(
            id="u1",
            contact_email="me@example.com",
            contact_email2="spouse@example.com",
            contact_phone="+911",
        )

        recipients = resolve_recipients(user, recipient_defaults)

        assert recipients.emails == ["me@example.com", "spouse@example.com"]
        assert recipients.phone == "+911"

    def test_defaults_fill_missing_channels(self, recipient_defaults):
        recipients = resolve_recipients(UserProfile(id="u1"), recipient_defaults)

        assert recipients.emails == ["family@example.com"]
        assert recipients.phone == "+919811111111"

    def test_smtp_login_is_last_resort(self):
        recipients = resolve_recipients(
            UserProfile(id="u1"),
            RecipientSettings(recipient_email=None, secondary_email=None, RECIPIENT_PHONE=None),
            EmailSettings(user="sender@example.com", password="x"),
        )

        assert recipients.emails == ["sender@example.com"]
        assert recipients.phone is None


class TestReportFlow:

    async def test_generate_report(self, report_flow, email_service, storage):
        bundle = await report_flow.generate_report("user-1", "2024-03-01", "2024-03-05")

        assert bundle.summary.transaction_count == 3
        email_service.send.assert_not_awaited()

        requested = [e for e in storage.events if e.event_type == AuditEventType.REPORT_REQUESTED]
        assert requested[0].is_user_action is True

    async def test_generate_report_rejects_missing_dates(self, report_flow):
        with pytest.raises(ValidationError) as exc_info:
            await report_flow.generate_report("user-1", None, "")

        assert [i.issue_type for i in exc_info.value.issues] == ["missing", "missing"]

    async def test_generate_report_rejects_malformed_date(self, report_flow):
        with pytest.raises(ValidationError) as exc_info:
            await report_flow.generate_report("user-1", "03/01/2024", "2024-03-05")

        assert exc_info.value.issues[0].issue_type == "invalid_format"

    async def test_send_report_both(self, report_flow, email_service, sms_service):
        result = await report_flow.send_report("user-1", "2024-03-01", "2024-03-05", "both")

        assert result.results.email.success is True
        assert result.results.sms.success is True
        assert result.summary.net == result.summary.total_credit - result.summary.total_debit

        # User's own contacts are used
        assert email_service.send.await_args[0][0] == "asha@example.com"
        assert sms_service.send.await_args[0][0] == "+919800000001"

    async def test_send_report_uses_defaults_for_bare_user(
        self, report_flow, storage, email_service
    ):
        storage.add_user(UserProfile(id="user-2"))

        result = await report_flow.send_report("user-2", "2024-03-01", "2024-03-05", "email")

        assert result.results.sms is None
        assert email_service.send.await_args[0][0] == "family@example.com"

    async def test_send_report_unknown_method(self, report_flow, email_service):
        with pytest.raises(ValidationError):
            await report_flow.send_report("user-1", "2024-03-01", "2024-03-05", "fax")

        email_service.send.assert_not_awaited()

    async def test_generation_failure_sends_nothing(self, report_flow, email_service, sms_service):
        with pytest.raises(DataError):
            await report_flow.send_report("ghost", "2024-03-01", "2024-03-05", "both")

        email_service.send.assert_not_awaited()
        sms_service.send.assert_not_awaited()

    async def test_runs_for_same_user_are_serialized(self, report_flow, email_service):
        active = 0
        peak = 0
        delivered = email_service.send.return_value

        async def slow_send(*args, **kwargs):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return delivered

        email_service.send = AsyncMock(side_effect=slow_send)

        await asyncio.gather(
            report_flow.send_report("user-1", date(2024, 3, 1), date(2024, 3, 5), "email"),
            report_flow.send_report("user-1", date(2024, 3, 1), date(2024, 3, 5), "email"),
        )

        assert email_service.send.await_count == 2
        assert peak == 1
        assert report_flow._user_locks == {}
        assert report_flow._lock_holders == {}

    async def test_user_lock_released_after_each_run(self, report_flow):
        await report_flow.send_report("user-1", "2024-03-01", "2024-03-05", "email")
        assert report_flow._user_locks == {}

        with pytest.raises(DataError):
            await report_flow.send_report("ghost", "2024-03-01", "2024-03-05", "both")
        assert report_flow._user_locks == {}
        assert report_flow._lock_holders == {}
