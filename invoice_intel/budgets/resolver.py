"""Resolve the spending limit that applies to a portfolio and category."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..categories import ExpenseCategory
from ..models import (
    BudgetLoad,
    BudgetMap,
    CategoryLike,
    MultiScopeBudget,
    Portfolio,
    category_key,
)
from ..portfolios import first_portfolio

NO_LIMIT = 0.0


@dataclass
class BudgetContext:
    """Everything the resolver and evaluator need, passed explicitly.

    ``legacy_global`` is only ever consulted for the first portfolio.
    """

    budget: MultiScopeBudget
    portfolios: List[Portfolio] = field(default_factory=list)
    legacy_global: Optional[BudgetMap] = None

    @classmethod
    def from_load(cls, load: BudgetLoad, portfolios: Sequence[Portfolio]) -> "BudgetContext":
        return cls(budget=load.budget, portfolios=list(portfolios), legacy_global=load.legacy_global)

    @property
    def currency(self) -> str:
        return self.budget.default_currency

    @property
    def first_portfolio_id(self) -> Optional[str]:
        first = first_portfolio(self.portfolios)
        return first.id if first else None

    def is_first_portfolio(self, portfolio_id: Optional[str]) -> bool:
        return portfolio_id is not None and portfolio_id == self.first_portfolio_id

    def portfolio_name(self, portfolio_id: Optional[str]) -> Optional[str]:
        for portfolio in self.portfolios:
            if portfolio.id == portfolio_id:
                return portfolio.name
        return None


def resolve_limit(context: BudgetContext, portfolio_id: Optional[str], category: CategoryLike) -> float:
    """Return the effective limit for ``category`` in ``portfolio_id``.

    Order: the portfolio's own non-zero limit, then the legacy global limit
    when the portfolio is the first one, then no limit (0). There is no
    global fallback for other portfolios.

    Example:
        >>> ctx = BudgetContext(MultiScopeBudget({"p1": {"Parking": 50.0}}))
        >>> resolve_limit(ctx, "p1", "Parking")
        50.0
        >>> resolve_limit(ctx, "p1", "Toll")
        0.0
    """
    key = category_key(category)
    own = context.budget.budget_for(portfolio_id).get(key, NO_LIMIT)
    if own > 0:
        return float(own)
    if context.legacy_global and context.is_first_portfolio(portfolio_id):
        legacy = context.legacy_global.get(key, NO_LIMIT)
        if legacy > 0:
            return float(legacy)
    return NO_LIMIT


def effective_budget_map(context: BudgetContext, portfolio_id: Optional[str]) -> Dict[str, float]:
    """Resolve every category at once, keeping only categories with a limit."""
    resolved: Dict[str, float] = {}
    for category in ExpenseCategory:
        limit = resolve_limit(context, portfolio_id, category)
        if limit > 0:
            resolved[category.value] = limit
    return resolved
