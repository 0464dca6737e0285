import pytest

from invoice_intel.config import EXPIRY_GRACE_MS, TRIAL_LENGTH_MS
from invoice_intel.usage import (
    UserProfile,
    apply_plan,
    can_upload,
    get_tier,
    record_usage,
    refresh_user_status,
)

NOW = 1_700_000_000_000


def _user(**overrides):
    base = dict(id='u1', name='Ana', email='ana@example.com', trial_start_date=NOW - 1000)
    base.update(overrides)
    return UserProfile(**base)


def test_trial_expires_after_seven_days():
    fresh = refresh_user_status(_user(), now=NOW)
    assert fresh.is_trial_active
    stale = refresh_user_status(_user(trial_start_date=NOW - TRIAL_LENGTH_MS - 1), now=NOW)
    assert not stale.is_trial_active


def test_active_trial_with_zero_limit_is_reset():
    refreshed = refresh_user_status(_user(monthly_docs_limit=0), now=NOW)
    assert refreshed.monthly_docs_limit == 10


def test_expired_paid_plan_is_locked():
    user = _user(plan_id='pro', monthly_docs_limit=100, subscription_expiry=NOW - 1)
    refreshed = refresh_user_status(user, now=NOW)
    assert refreshed.plan_id == 'free'
    assert refreshed.monthly_docs_limit == 0
    assert refreshed.subscription_expiry is None
    assert not refreshed.is_trial_active


def test_can_upload_trial_limits():
    user = _user(docs_used_this_month=8)
    assert can_upload(user, 2, now=NOW).allowed
    decision = can_upload(user, 3, now=NOW)
    assert not decision.allowed
    assert decision.reason == 'trial_limit'
    assert can_upload(_user(is_trial_active=False), 1, now=NOW).reason == 'expired'


def test_can_upload_paid_plan_grace_period():
    user = _user(plan_id='pro', monthly_docs_limit=100, is_trial_active=False, subscription_expiry=NOW)
    assert can_upload(user, 1, now=NOW + EXPIRY_GRACE_MS).allowed
    assert can_upload(user, 1, now=NOW + EXPIRY_GRACE_MS + 1).reason == 'expired'
    full = _user(plan_id='pro', monthly_docs_limit=100, docs_used_this_month=100, is_trial_active=False)
    assert can_upload(full, 1, now=NOW).reason == 'plan_limit'


def test_admin_always_allowed():
    assert can_upload(_user(is_admin=True, is_trial_active=False), 999, now=NOW).allowed


def test_record_usage_and_apply_plan():
    user = record_usage(_user(docs_used_this_month=3), 2)
    assert user.docs_used_this_month == 5
    with pytest.raises(ValueError):
        record_usage(user, -1)
    upgraded = apply_plan(user, 'business', expiry=NOW + 1)
    assert upgraded.monthly_docs_limit == get_tier('business').limit == 500
    with pytest.raises(ValueError):
        apply_plan(user, 'platinum', expiry=None)


def test_profile_from_row_defaults():
    profile = UserProfile.from_row({'id': 'u1', 'email': 'a@b.c', 'is_trial_active': True})
    assert profile.plan_id == 'free'
    assert profile.monthly_docs_limit == 10
    assert profile.docs_used_this_month == 0
