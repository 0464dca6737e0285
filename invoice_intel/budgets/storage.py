"""Budget storage and versioned loading.

This module handles reading the user's budget configuration in the current
shape regardless of which historical version is on disk, and saving it back
under the current key.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..config import CURRENT_BUDGET_KEY, DEFAULT_CURRENCY
from ..models import BudgetLoad, MultiScopeBudget
from ..preference_store import PreferenceStore
from .migrations import MIGRATION_CHAIN, MigrationStep

logger = logging.getLogger(__name__)


class BudgetStorage:
    """Handles budget persistence through a :class:`PreferenceStore`."""

    def __init__(
        self,
        store: Optional[PreferenceStore] = None,
        migrations: Sequence[MigrationStep] = MIGRATION_CHAIN,
    ):
        """Initialize budget storage.

        Args:
            store: Preference store holding the raw payloads.
                   Defaults to a store rooted at PREFERENCES_DIR.
            migrations: Older versions to try, newest first.
        """
        self.store = store or PreferenceStore()
        self.migrations = tuple(migrations)

    def load(self) -> BudgetLoad:
        """Load budgets in the current shape.

        The current key is tried first, then each older version in turn.
        Malformed payloads count as absent. Nothing is written back; older
        keys stay untouched until the caller saves.

        Returns:
            BudgetLoad with the budget, the legacy global map carried over
            from older versions (if any), and the version it was read from
        """
        current = MultiScopeBudget.from_payload(self.store.get(CURRENT_BUDGET_KEY))
        if current is not None:
            return BudgetLoad(budget=current, source_version="v5")
        if self.store.exists(CURRENT_BUDGET_KEY):
            logger.warning("Ignoring malformed budget payload under %s", CURRENT_BUDGET_KEY)

        for step in self.migrations:
            payload = self.store.get(step.key)
            if payload is None:
                continue
            result = step.migrate(payload)
            if result is None:
                logger.warning("Ignoring malformed %s budget payload under %s", step.version, step.key)
                continue
            budget, legacy_global = result
            logger.info("Migrated %s budgets to the current format", step.version)
            return BudgetLoad(budget=budget, legacy_global=legacy_global, source_version=step.version)

        return BudgetLoad(budget=MultiScopeBudget(default_currency=DEFAULT_CURRENCY))

    def save(self, config: MultiScopeBudget) -> None:
        """Save budgets under the current key only.

        Raises:
            ValueError: If any limit is negative
            OSError: If the payload cannot be written
        """
        for portfolio_id, budgets in config.portfolios.items():
            for category, limit in budgets.items():
                if limit < 0:
                    raise ValueError(
                        f"Budget for {category} in portfolio {portfolio_id} cannot be negative"
                    )
        self.store.set(CURRENT_BUDGET_KEY, config.to_payload())


_default_storage: Optional[BudgetStorage] = None


def get_default_storage() -> BudgetStorage:
    global _default_storage
    if _default_storage is None:
        _default_storage = BudgetStorage()
    return _default_storage


def load_budgets(directory: Optional[Path] = None) -> BudgetLoad:
    """Load budgets from the default store, or from ``directory`` if given."""
    if directory is not None:
        return BudgetStorage(PreferenceStore(directory)).load()
    return get_default_storage().load()


def save_budgets(config: MultiScopeBudget, directory: Optional[Path] = None) -> None:
    """Save budgets to the default store, or to ``directory`` if given."""
    if directory is not None:
        BudgetStorage(PreferenceStore(directory)).save(config)
        return
    get_default_storage().save(config)
