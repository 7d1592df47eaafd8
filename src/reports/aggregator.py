"""
Balance Aggregator

Reduces a set of transactions to income/expense totals and per-payment-mode
balances.

COMPATIBILITY NOTE: a transaction whose mode is not one of the user's known
payment modes still counts towards total_credit, total_debit and
transaction_count, but is left out of every per-mode balance. The sum of
account balances can therefore differ from net.
"""

from decimal import Decimal
from typing import Iterable

from src.models.report import ZERO, AggregationResult
from src.models.transaction import Transaction


def aggregate_transactions(
    transactions: Iterable[Transaction],
    known_modes: Iterable[str],
) -> AggregationResult:
    """
    Aggregate transactions against a set of known payment mode ids.

    Pure and order independent. An empty input yields all zeros, with a zero
    balance for every known mode.
    """
    accounts: dict[str, Decimal] = {mode: ZERO for mode in known_modes}
    total_credit = ZERO
    total_debit = ZERO
    count = 0

    for transaction in transactions:
        count += 1
        if transaction.is_credit:
            total_credit += transaction.amount
        else:
            total_debit += transaction.amount

        if transaction.mode in accounts:
            accounts[transaction.mode] += transaction.signed_amount

    return AggregationResult(
        total_credit=total_credit,
        total_debit=total_debit,
        net=total_credit - total_debit,
        accounts=accounts,
        transaction_count=count,
    )
