"""Subscription plans and monthly document usage metering.

Times are epoch milliseconds, matching the stored profile rows. Every
function returns a new profile instead of mutating its argument.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, List, Mapping, Optional

from .config import EXPIRY_GRACE_MS, TRIAL_DOCS_LIMIT, TRIAL_LENGTH_MS
from .models import now_ms

FREE_PLAN = 'free'


@dataclass(frozen=True)
class PricingTier:
    id: str
    name: str
    limit: int
    price: float
    description: str
    features: List[str] = field(default_factory=list)
    popular: bool = False


PRICING_PACKAGES: List[PricingTier] = [
    PricingTier(
        id='basic',
        name='Personal (Basic)',
        limit=30,
        price=15.90,
        description='For individuals managing monthly bills.',
        features=['30 Receipts / Month', 'Standard Processing', 'Excel Export'],
    ),
    PricingTier(
        id='pro',
        name='Freelancer (Pro)',
        limit=100,
        price=39.90,
        description='For agents, freelancers & power users.',
        features=['100 Receipts / Month', 'Priority AI Processing', 'Spending Analytics'],
        popular=True,
    ),
    PricingTier(
        id='business',
        name='SME (Business)',
        limit=500,
        price=89.90,
        description='For small businesses and teams.',
        features=['500 Receipts / Month', 'High-Speed Bulk Upload', 'Priority Support'],
    ),
]


def get_tier(plan_id: str) -> Optional[PricingTier]:
    return next((tier for tier in PRICING_PACKAGES if tier.id == plan_id), None)


@dataclass(frozen=True)
class UserProfile:
    id: str
    name: str
    email: str
    plan_id: str = FREE_PLAN
    subscription_expiry: Optional[int] = None
    monthly_docs_limit: int = TRIAL_DOCS_LIMIT
    docs_used_this_month: int = 0
    trial_start_date: int = 0
    is_trial_active: bool = True
    is_admin: bool = False
    avatar_url: Optional[str] = None
    stripe_customer_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserProfile":
        limit = row.get('monthly_docs_limit')
        return cls(
            id=str(row['id']),
            name=row.get('name') or '',
            email=row.get('email') or '',
            plan_id=row.get('plan_id') or FREE_PLAN,
            subscription_expiry=row.get('subscription_expiry'),
            monthly_docs_limit=limit if isinstance(limit, int) and not isinstance(limit, bool) else TRIAL_DOCS_LIMIT,
            docs_used_this_month=row.get('docs_used_this_month') or 0,
            trial_start_date=row.get('trial_start_date') or 0,
            is_trial_active=bool(row.get('is_trial_active')),
            is_admin=bool(row.get('is_admin')),
            avatar_url=row.get('avatar_url'),
            stripe_customer_id=row.get('stripe_customer_id'),
        )


@dataclass(frozen=True)
class UploadDecision:
    allowed: bool
    reason: Optional[str] = None  # 'trial_limit', 'plan_limit' or 'expired'


def refresh_user_status(user: UserProfile, now: Optional[int] = None) -> UserProfile:
    """Recompute trial state and lock paid plans whose subscription expired."""
    now = now_ms() if now is None else now
    updated = user
    if user.plan_id == FREE_PLAN:
        trial_active = (now - user.trial_start_date) <= TRIAL_LENGTH_MS
        limit = user.monthly_docs_limit
        if trial_active and limit == 0:
            limit = TRIAL_DOCS_LIMIT
        updated = replace(updated, is_trial_active=trial_active, monthly_docs_limit=limit)
    else:
        updated = replace(updated, is_trial_active=False)

    if user.plan_id != FREE_PLAN and user.subscription_expiry and now > user.subscription_expiry:
        updated = replace(
            updated,
            plan_id=FREE_PLAN,
            monthly_docs_limit=0,
            subscription_expiry=None,
            is_trial_active=False,
        )
    return updated


def can_upload(user: UserProfile, file_count: int, now: Optional[int] = None) -> UploadDecision:
    now = now_ms() if now is None else now
    if user.is_admin:
        return UploadDecision(True)
    over_limit = user.docs_used_this_month + file_count > user.monthly_docs_limit

    if user.plan_id == FREE_PLAN:
        if not user.is_trial_active:
            return UploadDecision(False, 'expired')
        return UploadDecision(False, 'trial_limit') if over_limit else UploadDecision(True)

    if user.subscription_expiry and now > user.subscription_expiry + EXPIRY_GRACE_MS:
        return UploadDecision(False, 'expired')
    if over_limit:
        return UploadDecision(False, 'plan_limit')
    return UploadDecision(True)


def record_usage(user: UserProfile, file_count: int) -> UserProfile:
    if file_count < 0:
        raise ValueError("file_count cannot be negative")
    return replace(user, docs_used_this_month=(user.docs_used_this_month or 0) + file_count)


def apply_plan(user: UserProfile, plan_id: str, expiry: Optional[int]) -> UserProfile:
    """Switch ``user`` to a paid plan, taking its monthly document limit."""
    tier = get_tier(plan_id)
    if tier is None:
        raise ValueError(f"Unknown plan '{plan_id}'")
    return replace(
        user,
        plan_id=tier.id,
        monthly_docs_limit=tier.limit,
        subscription_expiry=expiry,
        is_trial_active=False,
    )
