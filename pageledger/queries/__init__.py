"""Aggregate queries package."""

from pageledger.queries.aggregates import (
    filter_by_number,
    ledger_totals,
    sum_interest,
    sum_money,
    summarize_page,
    total_by_type,
)

__all__ = [
    "filter_by_number",
    "ledger_totals",
    "sum_interest",
    "sum_money",
    "summarize_page",
    "total_by_type",
]
