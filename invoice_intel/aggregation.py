"""Expense aggregation for totals, breakdowns and trend reports.

All functions accept a sequence of :class:`ExpenseRecord` objects or plain
mappings (rows straight from the persistence layer). Amounts that are
missing or not numeric count as 0, dates that are not ISO formatted are
grouped by their raw prefix, and an empty input yields empty results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from .categories import ExpenseCategory
from .models import ExpenseRecord, category_key, coerce_amount

ExpenseLike = Union[ExpenseRecord, Mapping[str, Any]]

UNKNOWN_VENDOR = "Unknown Vendor"
FRAME_COLUMNS = ['vendor_name', 'category', 'date', 'amount']

_ALIASES = {
    'vendor_name': ('vendor_name', 'vendorName'),
    'category': ('category',),
    'date': ('date',),
    'amount': ('amount',),
}


@dataclass
class ExpenseStats:
    total_amount: float = 0.0
    count: int = 0
    category_breakdown: List[Tuple[str, float]] = field(default_factory=list)


def _row(expense: ExpenseLike) -> Dict[str, Any]:
    if isinstance(expense, ExpenseRecord):
        return {
            'vendor_name': expense.vendor_name,
            'category': category_key(expense.category),
            'date': expense.date,
            'amount': expense.amount,
        }
    row: Dict[str, Any] = {}
    for column, keys in _ALIASES.items():
        row[column] = next((expense[key] for key in keys if key in expense), None)
    if isinstance(row['category'], ExpenseCategory):
        row['category'] = row['category'].value
    return row


def expenses_frame(expenses: Iterable[ExpenseLike]) -> pd.DataFrame:
    """Build a normalised DataFrame with one row per expense."""
    df = pd.DataFrame([_row(expense) for expense in expenses], columns=FRAME_COLUMNS)
    df['amount'] = df['amount'].map(coerce_amount).astype(float)
    df['vendor_name'] = df['vendor_name'].fillna(UNKNOWN_VENDOR).astype(str)
    df['category'] = df['category'].fillna(ExpenseCategory.OTHERS.value).astype(str)
    df['date'] = df['date'].fillna('').astype(str)
    return df


def _sum_by(df: pd.DataFrame, key: pd.Series) -> Dict[str, float]:
    if df.empty:
        return {}
    grouped = df['amount'].groupby(key, sort=False).sum()
    return {str(name): float(value) for name, value in grouped.items()}


def _sorted_desc(totals: Dict[str, float]) -> List[Tuple[str, float]]:
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def total_amount(expenses: Iterable[ExpenseLike]) -> float:
    """Sum of all amounts.

    Example:
        >>> total_amount([{'amount': 10}, {'amount': 'bad'}, {'amount': 5}])
        15.0
    """
    df = expenses_frame(expenses)
    return float(df['amount'].sum()) if not df.empty else 0.0


def by_category(expenses: Iterable[ExpenseLike]) -> Dict[str, float]:
    df = expenses_frame(expenses)
    return _sum_by(df, df['category'])


def by_vendor(expenses: Iterable[ExpenseLike]) -> Dict[str, float]:
    df = expenses_frame(expenses)
    return _sum_by(df, df['vendor_name'])


def by_month(expenses: Iterable[ExpenseLike]) -> Dict[str, float]:
    """Totals keyed by the first seven characters of the date (``YYYY-MM``)."""
    df = expenses_frame(expenses)
    return _sum_by(df, df['date'].str[:7])


def top_vendors(expenses: Iterable[ExpenseLike], n: int = 5) -> List[Tuple[str, float]]:
    return _sorted_desc(by_vendor(expenses))[:n]


def monthly_trend(expenses: Iterable[ExpenseLike]) -> List[Tuple[str, float]]:
    """Monthly totals in ascending month order."""
    return sorted(by_month(expenses).items(), key=lambda item: item[0])


def compute_stats(expenses: Iterable[ExpenseLike]) -> ExpenseStats:
    """Totals shown above the expense list."""
    df = expenses_frame(expenses)
    if df.empty:
        return ExpenseStats()
    return ExpenseStats(
        total_amount=float(df['amount'].sum()),
        count=int(len(df)),
        category_breakdown=_sorted_desc(_sum_by(df, df['category'])),
    )


def budget_vs_actual(expenses: Iterable[ExpenseLike], budgets: Mapping[str, float]) -> pd.DataFrame:
    """Compare spending per category with its limit.

    Args:
        expenses: Expenses already scoped to one portfolio
        budgets: Resolved limits keyed by category label

    Returns:
        DataFrame with Category, Spent, Limit and Over Budget columns, one
        row per category that has spending or a limit
    """
    spent = by_category(expenses)
    limits = {category_key(key): float(value or 0) for key, value in budgets.items()}
    ordered = [c.value for c in ExpenseCategory]
    ordered += [key for key in list(spent) + list(limits) if key not in ordered]
    rows = []
    for category in dict.fromkeys(ordered):
        amount = spent.get(category, 0.0)
        limit = limits.get(category, 0.0)
        if amount <= 0 and limit <= 0:
            continue
        rows.append({
            'Category': category,
            'Spent': amount,
            'Limit': limit,
            'Over Budget': bool(limit > 0 and amount > limit),
        })
    return pd.DataFrame(rows, columns=['Category', 'Spent', 'Limit', 'Over Budget'])


def summary_kpis(expenses: Iterable[ExpenseLike]) -> Dict[str, Any]:
    """Headline figures for the analytics report."""
    df = expenses_frame(expenses)
    if df.empty:
        return {
            'total_spent': 0.0,
            'average_transaction': 0.0,
            'peak_month': None,
            'peak_month_total': 0.0,
        }
    total = float(df['amount'].sum())
    months = _sum_by(df, df['date'].str[:7])
    peak_month: Optional[str] = max(months, key=lambda month: months[month]) if months else None
    return {
        'total_spent': total,
        'average_transaction': total / len(df),
        'peak_month': peak_month,
        'peak_month_total': months.get(peak_month, 0.0) if peak_month else 0.0,
    }
