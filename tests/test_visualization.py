import plotly.graph_objects as go

from invoice_intel import visualization as viz
from invoice_intel.categories import ExpenseCategory
from invoice_intel.models import ExpenseRecord


def _records():
    return [
        ExpenseRecord(id='1', vendor_name='Shell', date='2024-01-05', amount=40.0, category=ExpenseCategory.TRANSPORT),
        ExpenseRecord(id='2', vendor_name='Cafe', date='2024-02-20', amount=12.5, category=ExpenseCategory.FOOD),
    ]


def test_empty_input_gives_placeholder_figures():
    for fig in (
        viz.create_monthly_trend_chart([]),
        viz.create_category_pie_chart([]),
        viz.create_top_vendors_chart([]),
        viz.create_budget_comparison_chart([], {}),
    ):
        assert isinstance(fig, go.Figure)
        assert fig.layout.title.text == "No data to display"


def test_monthly_trend_chart_orders_months():
    fig = viz.create_monthly_trend_chart(_records())
    assert list(fig.data[0].x) == ['2024-01', '2024-02']


def test_budget_comparison_marks_overspend_red():
    fig = viz.create_budget_comparison_chart(_records(), {'Transport': 30.0})
    spent = fig.data[0]
    categories = list(spent.x)
    colors = list(spent.marker.color)
    assert colors[categories.index('Transport')] == '#ef4444'
    assert colors[categories.index('Food & Dining')] != '#ef4444'


def test_top_vendors_chart_title():
    fig = viz.create_top_vendors_chart(_records(), n=3)
    assert fig.layout.title.text == "Top 3 vendors"
    assert set(fig.data[0].y) == {'Shell', 'Cafe'}
