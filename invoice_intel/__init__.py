"""Top-level package for Invoice Intel.

Budgeting, reporting and list-view logic for receipt-based expense
tracking. The primary modules are:

* ``budgets`` – versioned budget storage, limit resolution and warnings
* ``aggregation`` – totals and breakdowns over expense lists
* ``filtering`` – the search/filter/sort pipeline for the expense list
* ``portfolios`` – portfolio (page) lifecycle
* ``ledger`` – a session facade tying the above together
* ``visualization`` – Plotly figures for the analytics report
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import budgets  # noqa: F401  # re-exported for convenience
from .categories import ALL_CATEGORIES, ExpenseCategory
from .filtering import FilterCriteria, filter_and_sort
from .ledger import ExpenseLedger
from .models import (
    BudgetLoad,
    BudgetMap,
    BudgetWarning,
    ExpenseRecord,
    MultiScopeBudget,
    Portfolio,
)
from .portfolios import LastPortfolioError, PortfolioNotFoundError

__all__ = [
    "aggregation",
    "budgets",
    "ALL_CATEGORIES",
    "ExpenseCategory",
    "FilterCriteria",
    "filter_and_sort",
    "ExpenseLedger",
    "BudgetLoad",
    "BudgetMap",
    "BudgetWarning",
    "ExpenseRecord",
    "MultiScopeBudget",
    "Portfolio",
    "LastPortfolioError",
    "PortfolioNotFoundError",
]
