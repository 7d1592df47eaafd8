"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the storage backend because:
1. The user can view their transactions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.config.settings import GoogleSheetsSettings
from src.models.audit import AuditEvent
from src.models.report import DateRange
from src.models.transaction import Transaction, TransactionType, UserProfile
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "amount",
    "mode",
    "mode_name",
    "item",
    "date",
]

# Column mappings for Users sheet
USER_COLUMNS = [
    "id",
    "name",
    "contact_email",
    "contact_email2",
    "contact_phone",
    "payment_modes_json",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 5000
        )

    def get_users_sheet(self) -> gspread.Worksheet:
        """Get or create the Users worksheet."""
        return self._get_or_create_sheet(
            self._settings.users_sheet_name, USER_COLUMNS, 100
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000
        )


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Handle short rows gracefully."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def row_to_transaction(row: list) -> Transaction:
    """Convert a spreadsheet row to a Transaction."""
    return Transaction(
        id=_safe_get(row, 0),
        user_id=_safe_get(row, 1),
        type=TransactionType(_safe_get(row, 2).lower()),
        amount=Decimal(_safe_get(row, 3, "0")),
        mode=_safe_get(row, 4),
        mode_name=_safe_get(row, 5) or _safe_get(row, 4),
        item=_safe_get(row, 6),
        date=date.fromisoformat(_safe_get(row, 7)[:10]),
    )


def row_to_user(row: list) -> UserProfile:
    """
    Convert a spreadsheet row to a UserProfile.

    The payment modes cell may hold a JSON list of names or of {id, name}
    objects; UserProfile normalizes either.
    """
    modes_json = _safe_get(row, 5)
    payment_modes = json.loads(modes_json) if modes_json else []

    return UserProfile(
        id=_safe_get(row, 0),
        name=_safe_get(row, 1),
        contact_email=_safe_get(row, 2) or None,
        contact_email2=_safe_get(row, 3) or None,
        contact_phone=_safe_get(row, 4) or None,
        payment_modes=payment_modes,
    )


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row. Dates are stored as YYYY-MM-DD strings.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def find_transactions(
        self,
        user_id: str,
        date_range: DateRange,
    ) -> list[Transaction]:
        """Find a user's transactions in an inclusive date range."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to read transactions: {e}")

        transactions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if _safe_get(row, 1) != user_id:
                continue

            try:
                transaction = row_to_transaction(row)
            except Exception:
                continue  # Skip malformed rows

            if date_range.contains(transaction.date):
                transactions.append(transaction)

        # Sort by date descending (newest first)
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions


class GoogleSheetsUserStorage(UserStorageInterface):
    """
    Google Sheets implementation of user settings storage.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_rows(self) -> list[list]:
        try:
            sheet = self._client.get_users_sheet()
            return [row for row in sheet.get_all_values()[1:] if row and row[0]]
        except Exception as e:
            raise StorageError(f"Failed to read users: {e}")

    async def find_user(self, user_id: str) -> Optional[UserProfile]:
        """Retrieve a user by ID."""
        for row in self._read_rows():
            if row[0] == user_id:
                try:
                    return row_to_user(row)
                except Exception as e:
                    raise StorageError(f"Malformed user row for {user_id}: {e}")
        return None

    async def list_users(self) -> list[UserProfile]:
        """List every user with a well-formed row."""
        users = []
        for row in self._read_rows():
            try:
                users.append(row_to_user(row))
            except Exception:
                continue  # Skip malformed rows
        return users


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")
