"""
Shared fixtures.

No real API calls in tests: storage is in-memory, transports are mocks.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit import AuditLogger
from src.delivery import DeliveryDispatcher
from src.models.report import DeliveryOutcome
from src.models.transaction import Transaction, TransactionType, UserProfile
from src.reports import ReportGenerator
from src.services.storage import InMemoryStorage


def make_transaction(
    tx_id: str,
    tx_type: str,
    amount: str,
    mode: str,
    day: date,
    user_id: str = "user-1",
    item: str = "",
    mode_name: str = "",
) -> Transaction:
    return Transaction(
        id=tx_id,
        user_id=user_id,
        type=TransactionType(tx_type),
        amount=Decimal(amount),
        mode=mode,
        mode_name=mode_name or mode,
        item=item,
        date=day,
    )


@pytest.fixture
def user():
    return UserProfile(
        id="user-1",
        name="Asha",
        contact_email="asha@example.com",
        contact_phone="+919800000001",
        payment_modes=[
            {"id": "cash", "name": "Cash"},
            {"id": "hdfc", "name": "HDFC Savings"},
        ],
    )


@pytest.fixture
def transactions():
    return [
        make_transaction("t1", "credit", "1000.00", "hdfc", date(2024, 3, 1), item="Salary", mode_name="HDFC Savings"),
        make_transaction("t2", "debit", "250.50", "cash", date(2024, 3, 2), item="Groceries", mode_name="Cash"),
        make_transaction("t3", "debit", "99.99", "hdfc", date(2024, 3, 5), item="Internet", mode_name="HDFC Savings"),
        make_transaction("t4", "debit", "40.00", "cash", date(2024, 2, 28), item="Tea", mode_name="Cash"),
    ]


@pytest.fixture
def storage(user, transactions):
    return InMemoryStorage(users=[user], transactions=transactions)


@pytest.fixture
def audit_logger(storage):
    return AuditLogger(storage)


@pytest.fixture
def generator(storage, audit_logger):
    return ReportGenerator(
        transaction_storage=storage,
        user_storage=storage,
        audit_logger=audit_logger,
    )


@pytest.fixture
def email_service():
    service = MagicMock()
    service.is_configured = True
    service.send = AsyncMock(return_value=DeliveryOutcome.delivered("<msg-1@example.com>"))
    return service


@pytest.fixture
def sms_service():
    service = MagicMock()
    service.is_configured = True
    service.send = AsyncMock(return_value=DeliveryOutcome.delivered("SM123"))
    return service


@pytest.fixture
def dispatcher(email_service, sms_service, audit_logger):
    return DeliveryDispatcher(
        email_service=email_service,
        sms_service=sms_service,
        audit_logger=audit_logger,
    )
