"""Budget-exceeded warnings raised when a new expense is recorded.

Warnings are advisory. The expense is stored whether or not one is raised.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..models import BudgetWarning, CategoryLike, ExpenseRecord, category_key, coerce_amount
from ..portfolios import belongs_to
from .resolver import BudgetContext, resolve_limit

THIS_PAGE_LABEL = "this page"


def category_total(
    expenses: Iterable[ExpenseRecord],
    category: CategoryLike,
    portfolio_id: Optional[str],
    default_portfolio_id: Optional[str],
) -> float:
    """Sum spending in ``category`` counted against ``portfolio_id``."""
    key = category_key(category)
    return sum(
        coerce_amount(expense.amount)
        for expense in expenses
        if category_key(expense.category) == key
        and belongs_to(expense, portfolio_id, default_portfolio_id)
    )


def scope_label(context: BudgetContext, portfolio_id: Optional[str]) -> str:
    if context.is_first_portfolio(portfolio_id):
        return context.portfolio_name(portfolio_id) or THIS_PAGE_LABEL
    return THIS_PAGE_LABEL


def evaluate_warning(
    category: CategoryLike,
    amount: float,
    portfolio_id: Optional[str],
    expenses: Iterable[ExpenseRecord],
    context: BudgetContext,
) -> Optional[BudgetWarning]:
    """Decide whether adding ``amount`` pushes ``category`` over its limit.

    ``expenses`` are the already recorded expenses, not including the one
    being added. Legacy expenses without a portfolio count against the
    first portfolio. Reaching the limit exactly does not warn.

    Returns:
        A BudgetWarning, or None when there is no limit or it is not exceeded
    """
    limit = resolve_limit(context, portfolio_id, category)
    if limit <= 0:
        return None
    added = coerce_amount(amount)
    current = category_total(expenses, category, portfolio_id, context.first_portfolio_id)
    if current + added <= limit:
        return None
    return BudgetWarning(
        category=category_key(category),
        limit=limit,
        current_total=current,
        amount_added=added,
        currency=context.currency,
        scope_label=scope_label(context, portfolio_id),
    )
