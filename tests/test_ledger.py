import json

import pytest

from invoice_intel.budgets.storage import BudgetStorage
from invoice_intel.categories import ExpenseCategory
from invoice_intel.config import BUDGET_KEY_V4, BUDGET_KEY_V5
from invoice_intel.ledger import ExpenseLedger
from invoice_intel.models import ExpenseRecord, Portfolio
from invoice_intel.portfolios import LastPortfolioError
from invoice_intel.preference_store import PreferenceStore


def _ledger(tmp_path, **kwargs):
    return ExpenseLedger('u1', storage=BudgetStorage(PreferenceStore(tmp_path)), **kwargs)


def _expense(eid, amount, portfolio_id=None, category=ExpenseCategory.FOOD):
    return ExpenseRecord(
        id=eid,
        vendor_name='Cafe',
        date='2024-05-01',
        amount=amount,
        category=category,
        portfolio_id=portfolio_id,
    )


def test_open_creates_default_portfolio(tmp_path):
    ledger = _ledger(tmp_path)
    load = ledger.open()
    assert load.source_version == 'default'
    assert [p.name for p in ledger.portfolios] == ['General']
    assert ledger.active_portfolio_id == ledger.portfolios[0].id


def test_legacy_global_scenario(tmp_path):
    (tmp_path / f"{BUDGET_KEY_V4}.json").write_text(
        json.dumps({'portfolios': {}, 'global': {'Food & Dining': 40}}), encoding='utf-8'
    )
    ledger = _ledger(
        tmp_path,
        portfolios=[Portfolio(id='p1', name='General', user_id='u1', created_at=1)],
        expenses=[_expense('old', 50)],
    )
    ledger.open()

    assert ledger.resolve_limit('Food & Dining', 'p1') == 40.0
    # backfilled into the first portfolio and persisted under the current key
    saved = json.loads((tmp_path / f"{BUDGET_KEY_V5}.json").read_text(encoding='utf-8'))
    assert saved['portfolios'] == {'p1': {'Food & Dining': 40.0}}

    warning = ledger.add_expense(_expense('new', 5))
    assert warning is not None
    assert warning.projected_total == 55.0
    assert ledger.expenses[0].id == 'new'
    assert ledger.expenses[0].portfolio_id == 'p1'


def test_add_expense_is_stored_even_when_evaluation_fails(tmp_path, monkeypatch):
    ledger = _ledger(tmp_path)
    ledger.open()

    def boom(*args, **kwargs):
        raise RuntimeError("evaluation failed")

    monkeypatch.setattr('invoice_intel.ledger.evaluate_warning', boom)
    assert ledger.add_expense(_expense('e1', 10)) is None
    assert [e.id for e in ledger.expenses] == ['e1']


def test_save_budgets_scopes_to_active_portfolio(tmp_path):
    ledger = _ledger(tmp_path)
    ledger.open()
    trip = ledger.create_portfolio('Trip')
    ledger.switch_portfolio(trip.id)
    ledger.save_budgets({'Hotel': 200})

    assert ledger.resolve_limit('Hotel') == 200.0
    assert ledger.resolve_limit('Hotel', ledger.portfolios[0].id) == 0.0
    reloaded = _ledger(tmp_path)
    reloaded.open()
    assert reloaded.budget.portfolios[trip.id] == {'Hotel': 200.0}

    with pytest.raises(ValueError):
        ledger.save_budgets({'Hotel': -5})


def test_delete_portfolio_cascade_and_last_guard(tmp_path):
    purged = []
    ledger = _ledger(
        tmp_path,
        portfolios=[
            Portfolio(id='p1', name='General', user_id='u1', created_at=1),
            Portfolio(id='p2', name='Trip', user_id='u1', created_at=2),
        ],
        expenses=[_expense('a', 5, 'p1'), _expense('b', 7, 'p2'), _expense('c', 9, 'p2')],
        purge_image=purged.append,
    )
    ledger.open()
    ledger.switch_portfolio('p2')
    ledger.save_budgets({'Hotel': 100})

    ledger.delete_portfolio('p2')
    assert [p.id for p in ledger.portfolios] == ['p1']
    assert [e.id for e in ledger.expenses] == ['a']
    assert purged == ['b', 'c']
    assert ledger.active_portfolio_id == 'p1'
    assert 'p2' not in ledger.budget.portfolios

    with pytest.raises(LastPortfolioError):
        ledger.delete_portfolio('p1')


def test_view_and_stats_follow_active_portfolio(tmp_path):
    ledger = _ledger(
        tmp_path,
        portfolios=[
            Portfolio(id='p1', name='General', user_id='u1', created_at=1),
            Portfolio(id='p2', name='Trip', user_id='u1', created_at=2),
        ],
        expenses=[_expense('a', 5, 'p1'), _expense('b', 7, None), _expense('c', 9, 'p2')],
    )
    ledger.open()
    assert {e.id for e in ledger.view()} == {'a', 'b'}
    assert ledger.stats().total_amount == 12.0

    ledger.switch_portfolio('p2')
    assert [e.id for e in ledger.view()] == ['c']


def test_budget_status_uses_resolved_limits(tmp_path):
    ledger = _ledger(tmp_path, expenses=[_expense('a', 50)])
    ledger.open()
    ledger.save_budgets({'Food & Dining': 40})
    status = ledger.budget_status().set_index('Category')
    assert bool(status.loc['Food & Dining', 'Over Budget']) is True


def test_delete_expense_purges_image(tmp_path):
    purged = []
    ledger = _ledger(tmp_path, expenses=[_expense('a', 5)], purge_image=purged.append)
    ledger.open()
    ledger.delete_expense('a')
    assert ledger.expenses == []
    assert purged == ['a']
    with pytest.raises(KeyError):
        ledger.delete_expense('a')


def test_add_expense_leaves_caller_record_untouched(tmp_path):
    ledger = _ledger(tmp_path)
    ledger.open()
    expense = _expense('a', 5)
    ledger.add_expense(expense)
    assert expense.portfolio_id is None
    assert ledger.expenses[0].id == 'a'
    assert ledger.expenses[0].portfolio_id == ledger.active_portfolio_id
