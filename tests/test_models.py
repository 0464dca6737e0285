from datetime import date

from invoice_intel.categories import ExpenseCategory, parse_category
from invoice_intel.models import (
    BudgetWarning,
    ExpenseRecord,
    MultiScopeBudget,
    clean_budget_map,
    coerce_amount,
    normalize_date,
)


def test_parse_category_falls_back_to_others():
    assert parse_category('Parking') is ExpenseCategory.PARKING
    assert parse_category('utility bills') is ExpenseCategory.UTILITY
    assert parse_category('HOTEL') is ExpenseCategory.HOTEL
    assert parse_category('Groceries') is ExpenseCategory.OTHERS
    assert parse_category(None) is ExpenseCategory.OTHERS


def test_normalize_date_best_effort():
    assert normalize_date('2024-03-09') == '2024-03-09'
    assert normalize_date('March 9, 2024') == '2024-03-09'
    assert normalize_date('not a date') == 'not a date'
    assert normalize_date('') == date.today().isoformat()


def test_coerce_amount():
    assert coerce_amount('12.50') == 12.5
    assert coerce_amount('bad') == 0.0
    assert coerce_amount(None) == 0.0
    assert coerce_amount(float('nan')) == 0.0


def test_expense_from_row_accepts_both_key_styles():
    record = ExpenseRecord.from_row({
        'id': 'e1',
        'vendorName': 'Shell',
        'date': '2024-01-02',
        'amount': '45.10',
        'category': 'Toll',
        'createdAt': 1700000000000,
        'portfolioId': 'p1',
    })
    assert record.vendor_name == 'Shell'
    assert record.amount == 45.1
    assert record.category is ExpenseCategory.TOLL
    assert record.portfolio_id == 'p1'
    assert record.currency == 'USD'
    assert record.summary == ''

    snake = ExpenseRecord.from_row({'id': 'e2', 'vendor_name': 'Cafe', 'date': '2024-01-02', 'amount': None})
    assert snake.amount == 0.0
    assert snake.portfolio_id is None


def test_to_row_omits_image_data():
    record = ExpenseRecord(id='e1', vendor_name='V', date='2024-01-01', amount=3.0, image_data='data:...')
    row = record.to_row(user_id='u1')
    assert 'image_data' not in row
    assert row['user_id'] == 'u1'
    assert row['category'] == 'Others'


def test_clean_budget_map_drops_invalid_entries():
    assert clean_budget_map({'Parking': '5', 'Toll': -1, 'Hotel': None, 'Flight': 'x'}) == {'Parking': 5.0}
    assert clean_budget_map([1, 2]) == {}


def test_payload_round_trip():
    budget = MultiScopeBudget(portfolios={'p1': {'Parking': 10.0}}, default_currency='RM')
    assert MultiScopeBudget.from_payload(budget.to_payload()) == budget
    assert MultiScopeBudget.from_payload({'portfolios': 'broken'}) is None


def test_warning_message():
    warning = BudgetWarning('Parking', 100.0, 95.0, 10.0, 'RM', 'this page')
    assert warning.message == 'Spending on Parking for this page exceeds your RM 100.00 limit.'
