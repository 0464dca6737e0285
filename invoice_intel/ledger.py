"""Session state for one signed-in user.

:class:`ExpenseLedger` keeps the in-memory expenses, portfolios and budget
configuration and hands them explicitly to the pure budgeting, filtering
and aggregation functions. Remote persistence of expenses and portfolios
happens outside this class; callers refresh it with :meth:`replace_data`.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .aggregation import ExpenseStats, budget_vs_actual, compute_stats
from .budgets import (
    BudgetContext,
    BudgetStorage,
    apply_legacy_backfill,
    effective_budget_map,
    evaluate_warning,
    resolve_limit,
)
from .categories import ALL_CATEGORIES
from .filtering import FilterCriteria, filter_and_sort
from .models import (
    BudgetLoad,
    BudgetMap,
    BudgetWarning,
    CategoryLike,
    ExpenseRecord,
    MultiScopeBudget,
    Portfolio,
)
from .portfolios import (
    PortfolioNotFoundError,
    belongs_to,
    create_portfolio,
    delete_portfolio,
    ensure_default_portfolio,
    first_portfolio,
    rename_portfolio,
)

logger = logging.getLogger(__name__)


class ExpenseLedger:
    """In-memory expenses, portfolios and budgets for one session."""

    def __init__(
        self,
        user_id: str,
        storage: Optional[BudgetStorage] = None,
        expenses: Sequence[ExpenseRecord] = (),
        portfolios: Sequence[Portfolio] = (),
        purge_image: Optional[Callable[[str], None]] = None,
    ):
        self.user_id = user_id
        self.storage = storage or BudgetStorage()
        self.expenses: List[ExpenseRecord] = list(expenses)
        self.portfolios: List[Portfolio] = list(portfolios)
        self.purge_image = purge_image
        self.budget = MultiScopeBudget()
        self.legacy_global: Optional[BudgetMap] = None
        self.active_portfolio_id: Optional[str] = None
        self._backfilled = False

    # Session ---------------------------------------------------------------

    def open(self) -> BudgetLoad:
        """Load budgets, make sure a default portfolio exists and backfill
        any legacy global budget into it."""
        load = self.storage.load()
        self.budget = load.budget
        self.legacy_global = load.legacy_global
        self.portfolios = ensure_default_portfolio(self.portfolios, self.user_id)
        default = first_portfolio(self.portfolios)
        if self.active_portfolio_id is None and default is not None:
            self.active_portfolio_id = default.id
        self._backfill(load)
        return load

    def _backfill(self, load: BudgetLoad) -> None:
        if self._backfilled:
            return
        default = first_portfolio(self.portfolios)
        if default is None:
            return
        self._backfilled = True
        backfilled = apply_legacy_backfill(load, default.id)
        if backfilled is not load.budget:
            self.budget = backfilled
            self.storage.save(self.budget)

    def replace_data(
        self,
        expenses: Sequence[ExpenseRecord],
        portfolios: Optional[Sequence[Portfolio]] = None,
    ) -> None:
        """Swap in freshly fetched expenses (and portfolios)."""
        self.expenses = list(expenses)
        if portfolios is not None:
            self.portfolios = list(portfolios)
            if not any(p.id == self.active_portfolio_id for p in self.portfolios):
                default = first_portfolio(self.portfolios)
                self.active_portfolio_id = default.id if default else None

    def switch_portfolio(self, portfolio_id: str) -> None:
        if not any(p.id == portfolio_id for p in self.portfolios):
            raise PortfolioNotFoundError(portfolio_id)
        self.active_portfolio_id = portfolio_id

    def context(self) -> BudgetContext:
        return BudgetContext(
            budget=self.budget,
            portfolios=list(self.portfolios),
            legacy_global=self.legacy_global,
        )

    # Expenses --------------------------------------------------------------

    def add_expense(self, expense: ExpenseRecord) -> Optional[BudgetWarning]:
        """Record ``expense`` and return a budget warning if one applies.

        The expense is stored regardless of the outcome. A failure while
        evaluating the warning is logged and reported as no warning.
        """
        if expense.portfolio_id is None:
            expense = replace(expense, portfolio_id=self.active_portfolio_id)
        previous = list(self.expenses)
        self.expenses.insert(0, expense)
        try:
            return evaluate_warning(
                expense.category,
                expense.amount,
                expense.portfolio_id,
                previous,
                self.context(),
            )
        except Exception:
            logger.exception("Budget evaluation failed for expense %s", expense.id)
            return None

    def update_expense(self, expense: ExpenseRecord) -> None:
        for index, existing in enumerate(self.expenses):
            if existing.id == expense.id:
                self.expenses[index] = expense
                return
        raise KeyError(expense.id)

    def delete_expense(self, expense_id: str) -> ExpenseRecord:
        for index, existing in enumerate(self.expenses):
            if existing.id == expense_id:
                removed = self.expenses.pop(index)
                if self.purge_image is not None:
                    self.purge_image(expense_id)
                return removed
        raise KeyError(expense_id)

    # Portfolios ------------------------------------------------------------

    def create_portfolio(self, name: str) -> Portfolio:
        portfolio = create_portfolio(name, self.user_id, is_default=not self.portfolios)
        self.portfolios.append(portfolio)
        return portfolio

    def rename_portfolio(self, portfolio_id: str, name: str) -> None:
        self.portfolios = rename_portfolio(self.portfolios, portfolio_id, name)

    def delete_portfolio(self, portfolio_id: str) -> None:
        """Delete a portfolio with its expenses and budget map.

        Raises:
            LastPortfolioError: If it is the only portfolio left
        """
        self.portfolios, self.expenses = delete_portfolio(
            self.portfolios, self.expenses, portfolio_id, purge_image=self.purge_image
        )
        if portfolio_id in self.budget.portfolios:
            self.budget = self.budget.without_portfolio(portfolio_id)
            self.storage.save(self.budget)
        if self.active_portfolio_id == portfolio_id:
            default = first_portfolio(self.portfolios)
            self.active_portfolio_id = default.id if default else None

    # Budgets ---------------------------------------------------------------

    def save_budgets(self, budgets: Mapping[str, float], portfolio_id: Optional[str] = None) -> None:
        target = portfolio_id or self.active_portfolio_id
        if target is None:
            raise ValueError("No portfolio selected")
        if any(float(limit) < 0 for limit in budgets.values()):
            raise ValueError("Budget limits cannot be negative")
        self.budget = self.budget.with_portfolio(target, budgets)
        self.storage.save(self.budget)

    def set_default_currency(self, currency: str) -> None:
        if not currency or not currency.strip():
            raise ValueError("Currency cannot be empty")
        self.budget = MultiScopeBudget(
            portfolios=self.budget.portfolios,
            default_currency=currency.strip().upper(),
        )
        self.storage.save(self.budget)

    def resolve_limit(self, category: CategoryLike, portfolio_id: Optional[str] = None) -> float:
        return resolve_limit(self.context(), portfolio_id or self.active_portfolio_id, category)

    def effective_budgets(self, portfolio_id: Optional[str] = None) -> Dict[str, float]:
        return effective_budget_map(self.context(), portfolio_id or self.active_portfolio_id)

    # Views -----------------------------------------------------------------

    def portfolio_expenses(self, portfolio_id: Optional[str] = None) -> List[ExpenseRecord]:
        target = portfolio_id or self.active_portfolio_id
        default = first_portfolio(self.portfolios)
        default_id = default.id if default else None
        return [e for e in self.expenses if belongs_to(e, target, default_id)]

    def view(
        self,
        search_term: str = "",
        category: str = ALL_CATEGORIES,
        sort_field: str = 'date',
        sort_order: str = 'desc',
    ) -> List[ExpenseRecord]:
        criteria = FilterCriteria(
            search_term=search_term,
            category=category,
            portfolio_id=self.active_portfolio_id,
            sort_field=sort_field,
            sort_order=sort_order,
        )
        return filter_and_sort(self.expenses, criteria, self.portfolios)

    def stats(self, **filters: str) -> ExpenseStats:
        return compute_stats(self.view(**filters))

    def budget_status(self) -> pd.DataFrame:
        return budget_vs_actual(self.portfolio_expenses(), self.effective_budgets())
