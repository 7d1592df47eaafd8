"""
Abstract Storage Interface

DESIGN DECISION: The report core only needs a narrow, read-only slice of
storage. We define it as an abstract interface so that:
1. Google Sheets can be swapped for a real database later
2. In-memory storage can be used for testing
3. Business logic stays decoupled from the storage implementation

Writes (transaction CRUD, settings updates) belong to other parts of the
application and are deliberately absent here.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.models.audit import AuditEvent
from src.models.report import DateRange
from src.models.transaction import Transaction, UserProfile


class TransactionStorageInterface(ABC):
    """
    Read access to recorded transactions.
    """

    @abstractmethod
    async def find_transactions(
        self,
        user_id: str,
        date_range: DateRange,
    ) -> list[Transaction]:
        """
        Find a user's transactions within a date range.

        Args:
            user_id: Owning user
            date_range: Inclusive range; a transaction dated exactly on
                either bound is included

        Returns:
            Matching transactions sorted by date descending (newest first)

        Raises:
            StorageError: If the query fails
        """
        pass


class UserStorageInterface(ABC):
    """
    Read access to user contact and payment-mode settings.
    """

    @abstractmethod
    async def find_user(self, user_id: str) -> Optional[UserProfile]:
        """
        Retrieve a user's profile.

        Returns:
            The profile if found, None otherwise

        Raises:
            StorageError: If the lookup fails
        """
        pass

    @abstractmethod
    async def list_users(self) -> list[UserProfile]:
        """
        List every user, for scheduled report runs.

        Raises:
            StorageError: If the lookup fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
