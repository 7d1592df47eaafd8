"""Tests for report generation and interval resolution."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.models.audit import AuditEventType
from src.reports import DataError, ReportGenerator, resolve_interval
from src.services.storage import InMemoryStorage, StorageError
from src.validation import ValidationError


class TestResolveInterval:

    def test_daily(self):
        date_range = resolve_interval("daily", today=date(2024, 3, 13))
        assert (date_range.start_date, date_range.end_date) == (date(2024, 3, 13), date(2024, 3, 13))

    @pytest.mark.parametrize("today,expected_start", [
        (date(2024, 3, 13), date(2024, 3, 10)),  # Wednesday
        (date(2024, 3, 10), date(2024, 3, 10)),  # Sunday
        (date(2024, 3, 16), date(2024, 3, 10)),  # Saturday
    ])
    def test_weekly_starts_on_sunday(self, today, expected_start):
        date_range = resolve_interval("weekly", today=today)
        assert date_range.start_date == expected_start
        assert date_range.end_date == today

    def test_monthly(self):
        date_range = resolve_interval("monthly", today=date(2024, 2, 29))
        assert date_range.start_date == date(2024, 2, 1)

    def test_unknown_interval_falls_back_to_daily(self):
        date_range = resolve_interval("fortnightly", today=date(2024, 3, 13))
        assert date_range.start_date == date(2024, 3, 13)


class TestReportGenerator:

    async def test_generates_bundle(self, generator):
        bundle = await generator.generate("user-1", "2024-03-01", "2024-03-05")

        summary = bundle.summary
        assert summary.start_date == date(2024, 3, 1)
        assert summary.end_date == date(2024, 3, 5)
        assert summary.total_credit == Decimal("1000.00")
        assert summary.total_debit == Decimal("350.49")
        assert summary.net == Decimal("649.51")
        assert summary.accounts == {"cash": Decimal("-250.50"), "hdfc": Decimal("900.01")}
        assert summary.transaction_count == 3

        assert "User: Asha" in bundle.report_text
        assert "HDFC Savings: ₹900.01" in bundle.report_text
        assert bundle.short_summary.startswith("Expense (2024-03-01 to 2024-03-05)")
        assert "<html>" in bundle.report_html

    async def test_transactions_listed_newest_first(self, generator):
        bundle = await generator.generate("user-1", date(2024, 2, 1), date(2024, 3, 31))

        lines = [line for line in bundle.report_text.splitlines() if " | " in line]
        assert [line[:10] for line in lines] == [
            "2024-03-05", "2024-03-02", "2024-03-01", "2024-02-28",
        ]

    async def test_range_bounds_are_inclusive(self, generator):
        on_bounds = await generator.generate("user-1", date(2024, 3, 2), date(2024, 3, 5))
        inside = await generator.generate("user-1", date(2024, 3, 3), date(2024, 3, 4))

        assert on_bounds.summary.transaction_count == 2
        assert inside.summary.transaction_count == 0

    async def test_empty_range_is_not_an_error(self, generator):
        bundle = await generator.generate("user-1", date(2023, 1, 1), date(2023, 1, 31))

        summary = bundle.summary
        assert summary.transaction_count == 0
        assert summary.total_credit == 0
        assert summary.total_debit == 0
        assert summary.net == 0
        assert all(balance == 0 for balance in summary.accounts.values())
        assert bundle.report_text.endswith("📝 TRANSACTIONS (0):\n" + "-" * 50 + "\n")

    async def test_other_users_transactions_excluded(self, storage, generator, user):
        storage.add_user(user.model_copy(update={"id": "user-2"}))

        bundle = await generator.generate("user-2", "2024-01-01", "2024-12-31")

        assert bundle.summary.transaction_count == 0

    @pytest.mark.parametrize("start,end", [
        (None, date(2024, 3, 5)),
        ("", date(2024, 3, 5)),
        (date(2024, 3, 1), "   "),
    ])
    async def test_missing_date_raises_data_error(self, generator, storage, start, end):
        with pytest.raises(DataError):
            await generator.generate("user-1", start, end)

        failed = [e for e in storage.events if e.event_type == AuditEventType.REPORT_GENERATION_FAILED]
        assert len(failed) == 1

    async def test_reversed_range_raises_validation_error(self, generator):
        with pytest.raises(ValidationError) as exc_info:
            await generator.generate("user-1", "2024-03-05", "2024-03-01")
        assert exc_info.value.issues[0].issue_type == "invalid_range"

    async def test_unknown_user_raises_data_error(self, generator):
        with pytest.raises(DataError, match="User not found"):
            await generator.generate("nobody", "2024-03-01", "2024-03-05")

    async def test_storage_failure_raises_data_error(self, user):
        storage = InMemoryStorage(users=[user])
        storage.find_transactions = AsyncMock(side_effect=StorageError("sheet unavailable"))
        generator = ReportGenerator(transaction_storage=storage, user_storage=storage)

        with pytest.raises(DataError, match="sheet unavailable"):
            await generator.generate("user-1", "2024-03-01", "2024-03-05")

    async def test_success_is_audited(self, generator, storage):
        bundle = await generator.generate("user-1", "2024-03-01", "2024-03-05")

        generated = [e for e in storage.events if e.event_type == AuditEventType.REPORT_GENERATED]
        assert len(generated) == 1
        assert generated[0].entity_id == str(bundle.report_id)
        assert generated[0].details["transaction_count"] == 3

    async def test_generate_for_interval(self, generator):
        bundle = await generator.generate_for_interval("user-1", "weekly", today=date(2024, 3, 5))

        # Week of Sunday 2024-03-03
        assert bundle.summary.start_date == date(2024, 3, 3)
        assert bundle.summary.transaction_count == 1
