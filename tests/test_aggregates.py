"""
Tests for the aggregate calculator.

These are pure functions; no storage is involved.
"""

import pytest
from decimal import Decimal

from pageledger.models.page import Entry, Page, PageType
from pageledger.queries import (
    filter_by_number,
    ledger_totals,
    sum_interest,
    sum_money,
    summarize_page,
    total_by_type,
)


def make_page(page_type, *amounts, title="Page"):
    page = Page(title=title, type=page_type)
    for no, amount in enumerate(amounts, start=1):
        page.append_entry(Entry(no=no, money=amount))
    return page


class TestSums:
    """Tests for per-page sums."""

    def test_empty_sums_are_zero(self):
        assert sum_money([]) == Decimal("0")
        assert sum_interest([]) == Decimal("0")

    def test_sum_money(self):
        entries = [Entry(no=1, money=100), Entry(no=2, money="200.25")]
        assert sum_money(entries) == Decimal("300.25")

    def test_sum_interest_defaults_to_zero(self):
        entries = [
            Entry(no=1, money=100, interest=5),
            Entry(no=2, money=200),
        ]
        assert sum_interest(entries) == Decimal("5")

    def test_decimal_sums_do_not_drift(self):
        entries = [Entry(no=n, money=0.1) for n in range(10)]
        assert sum_money(entries) == Decimal("1.0")

    def test_large_amounts_keep_their_units(self):
        entries = [Entry(no=1, money=Decimal("1e30")), Entry(no=2, money=1)]
        assert sum_money(entries) == Decimal("1000000000000000000000000000001")

    def test_large_totals_keep_their_cents(self):
        pages = [
            make_page("neoya", "123456789012345678901234567890.25"),
            make_page("neoya", "0.50"),
        ]
        assert total_by_type(pages, "neoya") == Decimal("123456789012345678901234567890.75")

    def test_negative_amounts_are_summed(self):
        entries = [Entry(no=1, money=100), Entry(no=2, money=-30)]
        assert sum_money(entries) == Decimal("70")


class TestTotalByType:
    """Tests for cross-page totals."""

    def test_other_type_is_ignored(self):
        pages = [
            make_page(PageType.DEOYA, 10_000),
            make_page(PageType.NEOYA, 100, 200),
            make_page(PageType.NEOYA, 50),
        ]
        assert total_by_type(pages, PageType.NEOYA) == Decimal("350")
        assert total_by_type(pages, "deoya") == Decimal("10000")

    def test_no_pages_of_type(self):
        pages = [make_page(PageType.DEOYA, 10)]
        assert total_by_type(pages, PageType.NEOYA) == Decimal("0")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            total_by_type([], "monthly")

    def test_ledger_totals(self):
        pages = [
            make_page(PageType.DEOYA, 1, 2),
            make_page(PageType.NEOYA, 5),
            make_page(PageType.NEOYA),
        ]
        totals = ledger_totals(pages)
        assert totals.deoya_total == Decimal("3")
        assert totals.neoya_total == Decimal("5")
        assert totals.deoya_page_count == 1
        assert totals.neoya_page_count == 2

    def test_ledger_totals_accepts_generators(self):
        pages = [make_page(PageType.DEOYA, 4)]
        totals = ledger_totals(page for page in pages)
        assert totals.deoya_total == Decimal("4")
        assert totals.deoya_page_count == 1


class TestFilterByNumber:
    """Tests for the entry number search."""

    @pytest.fixture
    def entries(self):
        return [Entry(no=no, money=1) for no in (1, 10, 3, 21, 7)]

    def test_substring_match(self, entries):
        assert [e.no for e in filter_by_number(entries, "1")] == [1, 10, 21]

    def test_empty_query_keeps_everything(self, entries):
        assert filter_by_number(entries, "") == entries

    def test_no_match(self, entries):
        assert filter_by_number(entries, "99") == []

    def test_filter_is_non_destructive(self, entries):
        before = list(entries)
        filter_by_number(entries, "3")
        assert entries == before

    def test_negative_numbers_match_on_text(self):
        entries = [Entry(no=-12, money=1), Entry(no=12, money=1)]
        assert [e.no for e in filter_by_number(entries, "-1")] == [-12]


class TestSummary:
    """Tests for page summaries."""

    def test_summary_of_neoya_page(self):
        page = Page(title="Jan", type=PageType.NEOYA)
        page.append_entry(Entry(no=1, money=100, interest=5))
        page.append_entry(Entry(no=2, money=200))

        summary = summarize_page(page)

        assert summary.page_id == page.id
        assert summary.entry_count == 2
        assert summary.total_money == Decimal("300")
        assert summary.total_interest == Decimal("5")
        assert summary.interest_applies is True

    def test_summary_of_empty_deoya_page(self):
        summary = summarize_page(Page(title="Rent", type=PageType.DEOYA))
        assert summary.entry_count == 0
        assert summary.total_money == Decimal("0")
        assert summary.interest_applies is False
