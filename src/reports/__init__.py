"""Report generation package: aggregation, formatting, generation."""

from src.reports.aggregator import aggregate_transactions
from src.reports.formatter import SMS_MAX_LENGTH, ReportFormatter, format_amount
from src.reports.generator import (
    DataError,
    ReportGenerationError,
    ReportGenerator,
    resolve_interval,
)

__all__ = [
    "aggregate_transactions",
    "DataError",
    "format_amount",
    "ReportFormatter",
    "ReportGenerationError",
    "ReportGenerator",
    "resolve_interval",
    "SMS_MAX_LENGTH",
]
