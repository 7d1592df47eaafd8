"""
Report and Delivery Models

Everything produced by one report run: the date range it covers, the
aggregation, the rendered bundle, and the per-channel delivery outcomes.

None of these are persisted. A bundle is built fresh for each request and
consumed once by the dispatcher or returned to the caller.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ZERO = Decimal("0")


class ReportInterval(str, Enum):
    """Relative report periods understood by the interval resolver."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class DeliveryChannel(str, Enum):
    """A delivery transport for a generated report."""
    SMS = "sms"
    EMAIL = "email"


class DeliveryMethod(str, Enum):
    """Which channel(s) a dispatch should attempt."""
    SMS = "sms"
    EMAIL = "email"
    BOTH = "both"

    @property
    def channels(self) -> list[DeliveryChannel]:
        if self == DeliveryMethod.BOTH:
            return [DeliveryChannel.SMS, DeliveryChannel.EMAIL]
        return [DeliveryChannel(self.value)]


class DateRange(BaseModel):
    """
    An inclusive calendar-date range.

    Transaction dates carry no time zone, so bounds are compared as dates.
    start_of_day / end_of_day give the equivalent datetime bounds for
    backends that store timestamps.
    """
    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    @property
    def start_of_day(self) -> datetime:
        return datetime.combine(self.start_date, time.min)

    @property
    def end_of_day(self) -> datetime:
        return datetime.combine(self.end_date, time.max)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def __str__(self) -> str:
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"


class AggregationResult(BaseModel):
    """Totals and per-payment-mode balances for one set of transactions."""

    total_credit: Decimal = ZERO
    total_debit: Decimal = ZERO
    net: Decimal = ZERO
    accounts: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Payment mode id -> signed balance, in known-mode order"
    )
    transaction_count: int = Field(default=0, ge=0)

    @property
    def total_balance(self) -> Decimal:
        """Sum of per-mode balances. Differs from net when unknown modes were excluded."""
        return sum(self.accounts.values(), ZERO)


class ReportSummary(AggregationResult):
    """
    Aggregation bound to a user and a period.

    CRITICAL: start_date and end_date are required. Delivery treats a summary
    without them as a fatal validation problem.
    """

    user_id: str
    start_date: date
    end_date: date
    account_labels: dict[str, str] = Field(
        default_factory=dict,
        description="Payment mode id -> display name"
    )

    @classmethod
    def from_aggregation(
        cls,
        aggregation: AggregationResult,
        user_id: str,
        date_range: DateRange,
        account_labels: Optional[dict[str, str]] = None,
    ) -> 'ReportSummary':
        return cls(
            **aggregation.model_dump(),
            user_id=user_id,
            start_date=date_range.start_date,
            end_date=date_range.end_date,
            account_labels=account_labels or {},
        )

    @property
    def period_label(self) -> str:
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"


class ReportBundle(BaseModel):
    """The rendered report plus its structured summary."""

    report_id: UUID = Field(default_factory=uuid4)
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    report_text: str
    report_html: str = ""
    short_summary: str = ""
    summary: ReportSummary


class DeliveryOutcome(BaseModel):
    """Result of one channel attempt."""

    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> 'DeliveryOutcome':
        return cls(success=False, error=error)

    @classmethod
    def delivered(cls, message_id: Optional[str] = None) -> 'DeliveryOutcome':
        return cls(success=True, message_id=message_id)


class DeliveryResults(BaseModel):
    """
    Combined outcome of a dispatch.

    None means the channel was not requested, which is different from a
    failed attempt.
    """

    sms: Optional[DeliveryOutcome] = None
    email: Optional[DeliveryOutcome] = None

    @property
    def attempted(self) -> list[DeliveryChannel]:
        return [
            channel for channel in DeliveryChannel
            if getattr(self, channel.value) is not None
        ]

    @property
    def all_succeeded(self) -> bool:
        outcomes = [getattr(self, c.value) for c in self.attempted]
        return bool(outcomes) and all(o.success for o in outcomes)

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class Recipients(BaseModel):
    """Where one dispatch should go."""

    emails: list[str] = Field(default_factory=list)
    phone: Optional[str] = None

    @field_validator('emails', mode='before')
    @classmethod
    def drop_blank_emails(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        seen = []
        for email in v:
            email = (email or "").strip()
            if email and email not in seen:
                seen.append(email)
        return seen

    @field_validator('phone', mode='before')
    @classmethod
    def blank_phone_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @property
    def email_list(self) -> str:
        """Comma-joined recipient list for the email transport."""
        return ", ".join(self.emails)


class SendReportResult(BaseModel):
    """What an on-demand send returns to its caller."""

    report_id: UUID
    summary: ReportSummary
    results: DeliveryResults


class ValidationIssue(BaseModel):
    """A single problem found in a report request."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
