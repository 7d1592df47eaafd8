"""Tests for the delivery dispatcher."""

import pytest

from src.delivery import email_subject
from src.models.audit import AuditEventType
from src.models.report import DeliveryMethod, DeliveryOutcome, Recipients


@pytest.fixture
async def bundle(generator):
    return await generator.generate("user-1", "2024-03-01", "2024-03-05")


@pytest.fixture
def recipients():
    return Recipients(emails=["asha@example.com", "ravi@example.com"], phone="+919800000001")


class TestDeliveryDispatcher:

    async def test_both_channels(self, dispatcher, bundle, recipients, email_service, sms_service):
        results = await dispatcher.dispatch(bundle, "both", recipients)

        assert results.email.success is True
        assert results.sms.success is True
        assert results.sms.message_id == "SM123"

        email_service.send.assert_awaited_once_with(
            "asha@example.com, ravi@example.com",
            bundle.report_text,
            bundle.report_html,
            "💰 Expense Report - 2024-03-01 to 2024-03-05",
        )
        sms_service.send.assert_awaited_once_with("+919800000001", bundle.short_summary)

    async def test_only_requested_channel_is_attempted(
        self, dispatcher, bundle, recipients, sms_service
    ):
        results = await dispatcher.dispatch(bundle, DeliveryMethod.EMAIL, recipients)

        assert results.sms is None
        assert results.email.success is True
        sms_service.send.assert_not_awaited()

    async def test_raising_channel_does_not_affect_the_other(
        self, dispatcher, bundle, recipients, email_service
    ):
        email_service.send.side_effect = RuntimeError("SMTP connection refused")

        results = await dispatcher.dispatch(bundle, "both", recipients)

        assert results.email.success is False
        assert "SMTP connection refused" in results.email.error
        assert results.sms.success is True
        assert results.sms.message_id == "SM123"

    async def test_failed_outcome_does_not_affect_the_other(
        self, dispatcher, bundle, recipients, sms_service
    ):
        sms_service.send.return_value = DeliveryOutcome.failure("Twilio error: invalid number")

        results = await dispatcher.dispatch(bundle, "both", recipients)

        assert results.sms.success is False
        assert results.email.success is True

    async def test_missing_email_recipient_skips_transport(
        self, dispatcher, bundle, email_service
    ):
        results = await dispatcher.dispatch(bundle, "email", Recipients())

        assert results.email.success is False
        assert "recipient" in results.email.error
        email_service.send.assert_not_awaited()

    async def test_missing_phone_skips_transport(self, dispatcher, bundle, sms_service):
        results = await dispatcher.dispatch(bundle, "sms", Recipients(emails=["a@x.com"]))

        assert results.sms.success is False
        assert "recipient" in results.sms.error
        sms_service.send.assert_not_awaited()

    async def test_unconfigured_channel_skips_transport(
        self, dispatcher, bundle, recipients, sms_service
    ):
        sms_service.is_configured = False

        results = await dispatcher.dispatch(bundle, "both", recipients)

        assert results.sms.error == "sms not configured"
        assert results.email.success is True
        sms_service.send.assert_not_awaited()

    async def test_outcomes_are_audited(self, dispatcher, bundle, recipients, email_service, storage):
        email_service.send.side_effect = RuntimeError("down")

        await dispatcher.dispatch(bundle, "both", recipients)

        types = [e.event_type for e in storage.events]
        assert AuditEventType.DELIVERY_FAILED in types
        assert AuditEventType.DELIVERY_SUCCEEDED in types
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in types

    async def test_exception_without_message_uses_type_name(
        self, dispatcher, bundle, recipients, email_service
    ):
        email_service.send.side_effect = TimeoutError()

        results = await dispatcher.dispatch(bundle, "email", recipients)

        assert results.email.error == "TimeoutError"

    async def test_missing_recipient_reported_before_configuration(
        self, dispatcher, bundle, email_service
    ):
        email_service.is_configured = False

        results = await dispatcher.dispatch(bundle, "email", Recipients())

        assert results.email.error == "email recipient not configured"
        email_service.send.assert_not_awaited()

    async def test_method_is_case_insensitive(
        self, dispatcher, bundle, recipients, email_service, sms_service
    ):
        results = await dispatcher.dispatch(bundle, " BOTH ", recipients)

        assert results.email.success is True
        assert results.sms.success is True
        email_service.send.assert_awaited_once()
        sms_service.send.assert_awaited_once()

    async def test_unknown_method_becomes_failed_results(
        self, dispatcher, bundle, recipients, email_service, sms_service
    ):
        results = await dispatcher.dispatch(bundle, "fax", recipients)

        assert results.email.success is False
        assert results.sms.success is False
        assert "fax" in results.email.error
        email_service.send.assert_not_awaited()
        sms_service.send.assert_not_awaited()

    async def test_email_subject(self, bundle):
        assert email_subject(bundle) == "💰 Expense Report - 2024-03-01 to 2024-03-05"
