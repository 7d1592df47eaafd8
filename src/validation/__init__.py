"""Request validation package."""

from src.validation.validator import (
    ReportRequestValidator,
    ValidationError,
    parse_date,
)

__all__ = ["ReportRequestValidator", "ValidationError", "parse_date"]
