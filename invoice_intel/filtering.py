"""Filter and sort the expense list for the active portfolio."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .categories import ALL_CATEGORIES
from .models import ExpenseRecord, Portfolio, category_key, coerce_amount
from .portfolios import belongs_to, first_portfolio

SORT_FIELDS = ('date', 'amount', 'vendor_name')
SORT_ORDERS = ('asc', 'desc')


@dataclass
class FilterCriteria:
    search_term: str = ""
    category: str = ALL_CATEGORIES
    portfolio_id: Optional[str] = None
    sort_field: str = 'date'
    sort_order: str = 'desc'

    def __post_init__(self) -> None:
        if self.sort_field not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field '{self.sort_field}'")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"Unsupported sort order '{self.sort_order}'")
        self.category = category_key(self.category)


def matches_search(expense: ExpenseRecord, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    return needle in (expense.vendor_name or '').lower() or needle in (expense.summary or '').lower()


def matches_category(expense: ExpenseRecord, category: str) -> bool:
    return category == ALL_CATEGORIES or category_key(expense.category) == category


def _sort_key(expense: ExpenseRecord, sort_field: str) -> Any:
    value = getattr(expense, sort_field)
    if sort_field == 'amount':
        return coerce_amount(value)
    return str(value or '').lower()


def filter_and_sort(
    expenses: Sequence[ExpenseRecord],
    criteria: FilterCriteria,
    portfolios: Sequence[Portfolio],
) -> List[ExpenseRecord]:
    """Produce the expense list view.

    Portfolio matching is skipped entirely while the portfolio list is still
    empty (not loaded yet at startup), so the view never shows up blank
    during that window. Otherwise an expense matches when its portfolio id
    equals the active one, or it has none and the active portfolio is the
    default.

    Sorting is stable: equal keys keep their input order in both
    directions.
    """
    portfolios_loaded = bool(portfolios)
    default = first_portfolio(portfolios)
    default_id = default.id if default else None

    selected = []
    for expense in expenses:
        if not matches_search(expense, criteria.search_term):
            continue
        if not matches_category(expense, criteria.category):
            continue
        if portfolios_loaded and not belongs_to(expense, criteria.portfolio_id, default_id):
            continue
        selected.append(expense)

    return sorted(
        selected,
        key=lambda expense: _sort_key(expense, criteria.sort_field),
        reverse=criteria.sort_order == 'desc',
    )
