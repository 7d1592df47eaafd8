"""
In-Memory Storage Implementation

Used by the test suite and as the fallback backend when Google Sheets is
not configured, so reports can still be generated from locally seeded data.
"""

from typing import Iterable, Optional

from src.models.audit import AuditEvent
from src.models.report import DateRange
from src.models.transaction import Transaction, UserProfile
from src.services.storage.interface import (
    AuditStorageInterface,
    TransactionStorageInterface,
    UserStorageInterface,
)


class InMemoryStorage(
    TransactionStorageInterface,
    UserStorageInterface,
    AuditStorageInterface,
):
    """Transactions, users and audit events held in plain lists."""

    def __init__(
        self,
        users: Optional[Iterable[UserProfile]] = None,
        transactions: Optional[Iterable[Transaction]] = None,
    ):
        self._users: dict[str, UserProfile] = {}
        self._transactions: list[Transaction] = []
        self.events: list[AuditEvent] = []

        for user in users or []:
            self.add_user(user)
        for transaction in transactions or []:
            self.add_transaction(transaction)

    def add_user(self, user: UserProfile) -> None:
        self._users[user.id] = user

    def add_transaction(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    async def find_transactions(
        self,
        user_id: str,
        date_range: DateRange,
    ) -> list[Transaction]:
        matches = [
            t for t in self._transactions
            if t.user_id == user_id and date_range.contains(t.date)
        ]
        # Stable sort keeps insertion order for same-day transactions
        return sorted(matches, key=lambda t: t.date, reverse=True)

    async def find_user(self, user_id: str) -> Optional[UserProfile]:
        return self._users.get(user_id)

    async def list_users(self) -> list[UserProfile]:
        return list(self._users.values())

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True
