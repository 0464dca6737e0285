"""Read-time migrations from older budget payloads to the current shape.

Every migration is a pure function taking the decoded payload of one older
version and returning ``(budget, legacy_global)`` or ``None`` when the
payload is malformed. ``legacy_global`` is the old user-wide map; it travels
beside the budget instead of inside it so it can never be saved by accident.

Payload history:

* v1 - a flat ``{category: limit}`` map applying to everything.
* v3 - named profiles plus ``assignments`` from portfolio id to profile id.
  The ``"global"`` profile is the implicit default.
* v4 - ``{"portfolios": {id: map}, "global": map}``.
* v5 - ``{"portfolios": {id: map}, "defaultCurrency": code}`` (current).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from ..config import (
    BUDGET_KEY_V1,
    BUDGET_KEY_V3,
    BUDGET_KEY_V4,
    DEFAULT_CURRENCY,
)
from ..models import BudgetLoad, BudgetMap, MultiScopeBudget, clean_budget_map

logger = logging.getLogger(__name__)

GLOBAL_PROFILE_ID = "global"

MigrationResult = Tuple[MultiScopeBudget, Optional[BudgetMap]]


class MigrationStep(NamedTuple):
    version: str
    key: str
    migrate: Callable[[Any], Optional[MigrationResult]]


def _non_empty(budgets: BudgetMap) -> Optional[BudgetMap]:
    return budgets if any(value > 0 for value in budgets.values()) else None


def migrate_v4(payload: Any) -> Optional[MigrationResult]:
    if not isinstance(payload, Mapping):
        return None
    portfolios = payload.get('portfolios') or {}
    if not isinstance(portfolios, Mapping):
        return None
    budget = MultiScopeBudget(
        portfolios={str(key): clean_budget_map(value) for key, value in portfolios.items()},
        default_currency=DEFAULT_CURRENCY,
    )
    return budget, _non_empty(clean_budget_map(payload.get('global')))


def _profile_budgets(profile: Mapping[str, Any]) -> BudgetMap:
    for key in ('budgets', 'limits', 'values'):
        if isinstance(profile.get(key), Mapping):
            return clean_budget_map(profile[key])
    return clean_budget_map({k: v for k, v in profile.items() if k not in {'id', 'name'}})


def migrate_v3(payload: Any) -> Optional[MigrationResult]:
    """Flatten profile assignments into per-portfolio maps.

    A portfolio assigned to a profile that no longer exists falls back to
    the global profile. Portfolios without an assignment get no map of their
    own; the global profile is returned as the legacy map instead, which the
    resolver and the one-time backfill apply to the first portfolio only.
    Other unassigned portfolios end up with no limits, matching the rule
    that a legacy global budget never reaches a non-default portfolio.
    """
    if not isinstance(payload, Mapping):
        return None
    raw_profiles = payload.get('profiles') or []
    assignments = payload.get('assignments') or {}
    if isinstance(raw_profiles, Mapping):
        raw_profiles = [
            {'id': key, **value} if isinstance(value, Mapping) else {'id': key}
            for key, value in raw_profiles.items()
        ]
    if not isinstance(raw_profiles, list) or not isinstance(assignments, Mapping):
        return None

    profiles: Dict[str, BudgetMap] = {}
    for profile in raw_profiles:
        if not isinstance(profile, Mapping) or profile.get('id') is None:
            continue
        profiles[str(profile['id'])] = _profile_budgets(profile)

    global_map = profiles.get(GLOBAL_PROFILE_ID, {})
    portfolios: Dict[str, BudgetMap] = {}
    for portfolio_id, profile_id in assignments.items():
        resolved = profiles.get(str(profile_id)) if profile_id is not None else None
        if resolved is None:
            resolved = global_map
        portfolios[str(portfolio_id)] = dict(resolved)

    budget = MultiScopeBudget(portfolios=portfolios, default_currency=DEFAULT_CURRENCY)
    return budget, _non_empty(dict(global_map))


def migrate_v1(payload: Any) -> Optional[MigrationResult]:
    if not isinstance(payload, Mapping):
        return None
    return MultiScopeBudget(default_currency=DEFAULT_CURRENCY), _non_empty(clean_budget_map(payload))


# Newest first; the first key present with a usable payload wins.
MIGRATION_CHAIN: Tuple[MigrationStep, ...] = (
    MigrationStep("v4", BUDGET_KEY_V4, migrate_v4),
    MigrationStep("v3", BUDGET_KEY_V3, migrate_v3),
    MigrationStep("v1", BUDGET_KEY_V1, migrate_v1),
)


def apply_legacy_backfill(load: BudgetLoad, first_portfolio_id: Optional[str]) -> MultiScopeBudget:
    """Copy the legacy global map into the first portfolio if it has none.

    Returns the loaded budget unchanged when there is nothing to backfill.
    """
    if not first_portfolio_id or not load.legacy_global:
        return load.budget
    if load.budget.portfolios.get(first_portfolio_id):
        return load.budget
    logger.info(
        "Backfilling legacy %s budget into portfolio %s", load.source_version, first_portfolio_id
    )
    return load.budget.with_portfolio(first_portfolio_id, load.legacy_global)
