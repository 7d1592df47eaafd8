"""
Core Data Models for Expense Reports

These models define the strict schemas for the data the report core reads
from storage. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Normalize storage quirks at the boundary so the core never branches on shape

DESIGN DECISION: Amounts are Decimal, never float.
Report totals must be exact and independent of summation order.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. The sign of a balance contribution comes only from here."""
    CREDIT = "credit"
    DEBIT = "debit"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single recorded credit or debit.

    Transactions are immutable once created and owned by storage.
    The report core only reads them.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Transaction identifier"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Non-negative amount; sign comes from type"
    )
    mode: str = Field(
        ...,
        min_length=1,
        description="Payment mode identifier"
    )
    mode_name: str = Field(
        ...,
        description="Payment mode display label at creation time"
    )
    item: str = Field(
        default="",
        max_length=500,
        description="Free text description"
    )
    date: date

    @property
    def is_credit(self) -> bool:
        return self.type == TransactionType.CREDIT

    @property
    def signed_amount(self) -> Decimal:
        """Amount with its balance sign applied."""
        return self.amount if self.is_credit else -self.amount


# =============================================================================
# USER SETTINGS
# =============================================================================

# Modes a user starts with when nothing has been configured
DEFAULT_PAYMENT_MODES = [
    {"id": "cash", "name": "Cash"},
]

MAX_PAYMENT_MODES = 5


class PaymentMode(BaseModel):
    """A named account (cash, a bank account, a card) transactions are recorded against."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Stable short key"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display label"
    )


class UserProfile(BaseModel):
    """
    The user fields the report core needs: name, report contacts, payment modes.

    Storage has historically kept payment modes either as a list of plain
    names or as a list of {id, name} objects. Both are accepted here and
    normalized to PaymentMode records.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="User identifier"
    )
    name: str = Field(
        default="",
        max_length=200,
        description="Display name"
    )
    contact_email: Optional[str] = Field(
        default=None,
        description="Primary report email"
    )
    contact_email2: Optional[str] = Field(
        default=None,
        description="Secondary report email"
    )
    contact_phone: Optional[str] = Field(
        default=None,
        description="Report mobile number"
    )
    payment_modes: list[PaymentMode] = Field(
        default_factory=lambda: [PaymentMode(**m) for m in DEFAULT_PAYMENT_MODES],
        min_length=1,
        max_length=MAX_PAYMENT_MODES,
    )

    @field_validator('contact_email', 'contact_email2', 'contact_phone', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Storage writes empty strings for unset contacts."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('payment_modes', mode='before')
    @classmethod
    def normalize_payment_modes(cls, v: Any) -> Any:
        """Accept plain names, dicts or PaymentMode instances."""
        if v is None:
            v = []
        if not isinstance(v, (list, tuple)):
            raise ValueError("Payment modes must be a list")

        modes = []
        for index, mode in enumerate(v, start=1):
            if isinstance(mode, PaymentMode):
                modes.append(mode)
            elif isinstance(mode, dict):
                name = str(mode.get("name") or "").strip()
                if not name:
                    continue
                mode_id = str(mode.get("id") or f"mode{index}").strip()
                modes.append({"id": mode_id, "name": name})
            else:
                name = str(mode).strip()
                if name:
                    modes.append({"id": f"mode{index}", "name": name})

        if not modes:
            # At least one mode must always exist
            return list(DEFAULT_PAYMENT_MODES)
        return modes

    @property
    def mode_ids(self) -> list[str]:
        return [mode.id for mode in self.payment_modes]

    @property
    def mode_labels(self) -> dict[str, str]:
        return {mode.id: mode.name for mode in self.payment_modes}

    @property
    def report_emails(self) -> list[str]:
        """The user's own report addresses, blanks dropped."""
        return [e for e in (self.contact_email, self.contact_email2) if e]
