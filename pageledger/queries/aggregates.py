"""
Aggregate Calculator

DESIGN DECISION: Aggregates are DETERMINISTIC, side-effect-free functions
over already-resolved data. They never touch storage, so the same input
sequence always yields the same totals and they can be tested without
a store fixture.

Amounts are summed as Decimal so totals do not drift with float rounding.
Sums run with SUM_PRECISION significant digits instead of the default 28,
so large amounts keep their cents.
"""

from collections.abc import Iterable
from decimal import Decimal, localcontext
from typing import Union

from pageledger.models.page import (
    Entry,
    LedgerTotals,
    Page,
    PageSummary,
    PageType,
)


ZERO = Decimal("0")
SUM_PRECISION = 100


def _exact_sum(amounts: Iterable[Decimal]) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = SUM_PRECISION
        return sum(amounts, ZERO)


def sum_money(entries: Iterable[Entry]) -> Decimal:
    """Sum of `money` over the entries; 0 for none."""
    return _exact_sum(entry.money for entry in entries)


def sum_interest(entries: Iterable[Entry]) -> Decimal:
    """Sum of `interest` over the entries, missing interest counting as 0."""
    return _exact_sum(entry.interest or ZERO for entry in entries)


def total_by_type(pages: Iterable[Page], page_type: Union[PageType, str]) -> Decimal:
    """
    Sum of money across pages of one type.

    Pages of the other type are ignored entirely, however large.
    """
    page_type = PageType(page_type)
    return _exact_sum(
        sum_money(page.entries) for page in pages if page.type == page_type
    )


def filter_by_number(entries: Iterable[Entry], query: str) -> list[Entry]:
    """
    Entries whose `no`, as text, contains `query`.

    Substring match, not numeric equality: "1" matches 1, 10 and 21.
    An empty query keeps everything. Order is preserved.
    """
    query = str(query) if query is not None else ""
    if not query:
        return list(entries)
    return [entry for entry in entries if query in str(entry.no)]


def summarize_page(page: Page) -> PageSummary:
    """Per-page totals for a page card."""
    return PageSummary(
        page_id=page.id,
        title=page.title,
        type=page.type,
        entry_count=len(page.entries),
        total_money=sum_money(page.entries),
        total_interest=sum_interest(page.entries),
        interest_applies=page.type.tracks_interest,
    )


def ledger_totals(pages: Iterable[Page]) -> LedgerTotals:
    """The two headline totals: all deoya money and all neoya money."""
    pages = list(pages)
    return LedgerTotals(
        deoya_total=total_by_type(pages, PageType.DEOYA),
        neoya_total=total_by_type(pages, PageType.NEOYA),
        deoya_page_count=sum(1 for page in pages if page.type == PageType.DEOYA),
        neoya_page_count=sum(1 for page in pages if page.type == PageType.NEOYA),
    )
