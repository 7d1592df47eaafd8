"""
Report Formatter

Renders a report summary into:
1. The canonical plain-text report (email body, API response, UI)
2. An HTML variant for email clients
3. A short summary that fits in a single SMS

All rendering is pure: no storage, no network.

DESIGN DECISION: The HTML renderer never raises on partial data.
A delivered report with 'N/A' in it is better than no report at all.
"""

import html
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel

from src.models.report import ReportSummary
from src.models.transaction import Transaction


SMS_MAX_LENGTH = 160

HEADER_RULE = "=" * 50
SECTION_RULE = "-" * 50

MISSING_SUMMARY_SMS = "Summary data is missing or invalid."

SummaryLike = Union[ReportSummary, Mapping, None]


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def format_amount(value: Any, places: int = 2) -> str:
    """Round half-up to a fixed number of decimals."""
    exponent = Decimal(1).scaleb(-places)
    rounded = _to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)  # no "-0.00"
    return str(rounded)


def _as_mapping(summary: SummaryLike) -> Optional[Mapping]:
    if summary is None:
        return None
    if isinstance(summary, BaseModel):
        return summary.model_dump()
    if isinstance(summary, Mapping):
        return summary
    return None


def _date_text(value: Any) -> str:
    if not value:
        return "N/A"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class ReportFormatter:
    """
    Turns an aggregation into human-readable reports.

    The currency symbol is the only knob; everything else is a fixed layout
    so that reports look the same whether they were requested on demand or
    produced by the scheduler.
    """

    def __init__(self, currency_symbol: str = "₹"):
        self._currency = currency_symbol

    def _money(self, value: Any, places: int = 2) -> str:
        return f"{self._currency}{format_amount(value, places)}"

    def render_text(
        self,
        summary: ReportSummary,
        transactions: Iterable[Transaction],
        user_name: Optional[str] = None,
    ) -> str:
        """
        Render the canonical plain-text report.

        Transactions are listed in the order given; callers pass them sorted
        by date descending.
        """
        transactions = list(transactions)

        lines = [
            "📊 EXPENSE REPORT",
            HEADER_RULE,
        ]
        if user_name:
            lines.append(f"User: {user_name}")
        lines.append(f"Period: {summary.period_label}")
        lines.append("")

        lines.append("💰 SUMMARY:")
        lines.append(f"Total Income: +{self._money(summary.total_credit)}")
        lines.append(f"Total Expenses: -{self._money(summary.total_debit)}")
        lines.append(f"Net Balance: {self._money(summary.net)}")
        lines.append("")

        lines.append("💳 ACCOUNT BALANCES:")
        for mode_id, balance in summary.accounts.items():
            label = summary.account_labels.get(mode_id, mode_id)
            lines.append(f"{label}: {self._money(balance)}")
        lines.append(f"Total: {self._money(summary.total_balance)}")
        lines.append("")

        lines.append(f"📝 TRANSACTIONS ({len(transactions)}):")
        lines.append(SECTION_RULE)
        for t in transactions:
            sign = "+" if t.is_credit else "-"
            lines.append(
                f"{t.date.isoformat()} | {sign}{self._money(t.amount)} | {t.item} | {t.mode_name}"
            )

        return "\n".join(lines) + "\n"

    def render_html(self, summary: SummaryLike, report_text: str = "") -> str:
        """
        Render the HTML email body.

        Missing dates render as 'N/A' and missing numbers as 0.
        """
        data = _as_mapping(summary)
        if data is None:
            return "<html><body><p>Error: Summary data is missing</p></body></html>"

        start_date = html.escape(_date_text(data.get("start_date")))
        end_date = html.escape(_date_text(data.get("end_date")))
        total_credit = self._money(data.get("total_credit"))
        total_debit = self._money(data.get("total_debit"))
        net = self._money(data.get("net"))
        transaction_count = data.get("transaction_count") or 0

        accounts = data.get("accounts") or {}
        labels = data.get("account_labels") or {}
        account_rows = "\n".join(
            f"          <p><strong>{html.escape(str(labels.get(mode_id, mode_id)))}:</strong> "
            f"{self._money(balance)}</p>"
            for mode_id, balance in accounts.items()
        )
        account_total = self._money(sum((_to_decimal(b) for b in accounts.values()), Decimal("0")))

        return f"""<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; background-color: #f4f4f4; padding: 20px; }}
    .container {{ background-color: white; padding: 30px; border-radius: 10px; max-width: 600px; margin: 0 auto; }}
    h1 {{ color: #4F46E5; }}
    .summary {{ background-color: #EEF2FF; padding: 20px; border-radius: 8px; margin: 20px 0; }}
    .positive {{ color: #10B981; font-weight: bold; }}
    .negative {{ color: #EF4444; font-weight: bold; }}
    .accounts {{ background-color: #F9FAFB; padding: 15px; border-radius: 8px; margin: 15px 0; }}
    pre {{ background-color: #F3F4F6; padding: 15px; border-radius: 8px; overflow-x: auto; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>📊 Expense Report</h1>
    <p><strong>Period:</strong> {start_date} to {end_date}</p>

    <div class="summary">
      <h2>💰 Summary</h2>
      <p><span class="positive">Income:</span> {total_credit}</p>
      <p><span class="negative">Expenses:</span> {total_debit}</p>
      <p><strong>Net Balance:</strong> {net}</p>
    </div>

    <div class="accounts">
      <h2>💳 Account Balances</h2>
{account_rows}
          <p><strong>Total:</strong> {account_total}</p>
    </div>

    <h2>📝 Transactions ({transaction_count})</h2>
    <pre>{html.escape(report_text or "")}</pre>
  </div>
</body>
</html>
"""

    def render_short_summary(self, summary: SummaryLike) -> str:
        """
        Render a summary that fits in one SMS (160 characters).

        Amounts are rounded to whole units. If the normal layout is too
        long, a terse single-line layout is used instead, and the result is
        cut to the limit as a last resort.
        """
        data = _as_mapping(summary)
        if data is None or data.get("total_credit") is None:
            return MISSING_SUMMARY_SMS

        start = _date_text(data.get("start_date"))
        end = _date_text(data.get("end_date"))
        credit = format_amount(data.get("total_credit"), 0)
        debit = format_amount(data.get("total_debit"), 0)
        net = format_amount(data.get("net"), 0)

        text = (
            f"Expense ({start} to {end}):\n"
            f"Inc: +{self._currency}{credit}\n"
            f"Exp: -{self._currency}{debit}\n"
            f"Net: {self._currency}{net}"
        )

        if len(text) > SMS_MAX_LENGTH:
            text = f"Sum({start}-{end}):I+{credit} E-{debit} N{net}"

        return text[:SMS_MAX_LENGTH]
