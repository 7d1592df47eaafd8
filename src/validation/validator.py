"""
Report Request Validation

Checks the inputs of an on-demand report request before any storage or
transport is touched:
- Start and end dates present and well formed
- Start not after end
- Delivery method is one we know

IMPORTANT: Validation NEVER silently fixes issues.
Every problem is reported back so the caller can reject the request.
"""

from datetime import date
from typing import Optional, Union

from src.models.report import DateRange, DeliveryMethod, ValidationIssue


DateInput = Union[date, str, None]


class ValidationError(Exception):
    """A report request is malformed. Carries every issue found."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


def parse_date(value: DateInput) -> Optional[date]:
    """
    Parse a calendar date.

    Accepts date objects and YYYY-MM-DD strings (a trailing time part is
    ignored). Returns None for empty input.

    Raises:
        ValueError: If a non-empty string is not a valid date
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


class ReportRequestValidator:
    """
    Validates report requests at the invocation boundary.
    """

    def _check_date(
        self,
        field: str,
        value: DateInput,
        issues: list[ValidationIssue],
    ) -> Optional[date]:
        try:
            parsed = parse_date(value)
        except ValueError:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} must be a date in YYYY-MM-DD format, got '{value}'",
            ))
            return None

        if parsed is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field} is required",
            ))
        return parsed

    def validate_date_range(
        self,
        start_date: DateInput,
        end_date: DateInput,
    ) -> DateRange:
        """
        Validate and build an inclusive date range.

        Raises:
            ValidationError: If either date is missing or invalid, or the
                range is reversed
        """
        issues: list[ValidationIssue] = []
        start = self._check_date("start_date", start_date, issues)
        end = self._check_date("end_date", end_date, issues)

        if start and end and end < start:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="invalid_range",
                message=f"End date {end.isoformat()} is before start date {start.isoformat()}",
            ))

        if issues:
            raise ValidationError(issues)

        return DateRange(start_date=start, end_date=end)

    def validate_method(
        self,
        method: Union[DeliveryMethod, str, None],
    ) -> DeliveryMethod:
        """
        Validate the requested delivery method.

        Raises:
            ValidationError: If the method is missing or unknown
        """
        if isinstance(method, DeliveryMethod):
            return method
        try:
            return DeliveryMethod(str(method or "").strip().lower())
        except ValueError:
            allowed = ", ".join(m.value for m in DeliveryMethod)
            raise ValidationError([ValidationIssue(
                field="method",
                issue_type="invalid_value",
                message=f"Unknown delivery method '{method}'. Allowed: {allowed}",
            )])
