"""Budget-specific utilities and business logic.

This package provides all budget-related functionality including:
- Versioned budget storage and read-time migration
- Limit resolution across portfolio scopes
- Budget-exceeded warnings for new expenses
"""

from .storage import (
    BudgetStorage,
    get_default_storage,
    load_budgets,
    save_budgets,
)
from .migrations import (
    GLOBAL_PROFILE_ID,
    MIGRATION_CHAIN,
    MigrationStep,
    apply_legacy_backfill,
    migrate_v1,
    migrate_v3,
    migrate_v4,
)
from .resolver import (
    NO_LIMIT,
    BudgetContext,
    effective_budget_map,
    resolve_limit,
)
from .alerts import (
    category_total,
    evaluate_warning,
)

__all__ = [
    # Storage
    'BudgetStorage',
    'get_default_storage',
    'load_budgets',
    'save_budgets',
    # Migrations
    'GLOBAL_PROFILE_ID',
    'MIGRATION_CHAIN',
    'MigrationStep',
    'apply_legacy_backfill',
    'migrate_v1',
    'migrate_v3',
    'migrate_v4',
    # Resolution
    'NO_LIMIT',
    'BudgetContext',
    'effective_budget_map',
    'resolve_limit',
    # Warnings
    'category_total',
    'evaluate_warning',
]
