"""Plotly figures for the spending analytics report.

Each function takes expenses (or the output of the matching function in
:mod:`invoice_intel.aggregation`) and returns a
``plotly.graph_objects.Figure``. Empty input produces an empty figure titled
"No data to display" rather than raising.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from . import aggregation
from .aggregation import ExpenseLike

PALETTE = ['#6366f1', '#10b981', '#f59e0b', '#ef4444', '#8b5cf6', '#ec4899', '#64748b']


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_monthly_trend_chart(expenses: Iterable[ExpenseLike], title: Optional[str] = None) -> go.Figure:
    """Area chart of total spending per month, oldest first."""
    trend = aggregation.monthly_trend(expenses)
    if not trend:
        return _empty_figure()
    df = pd.DataFrame(trend, columns=["Month", "Amount"])
    fig = px.area(df, x="Month", y="Amount", color_discrete_sequence=PALETTE)
    fig.update_layout(
        title=title or "Monthly spending",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_category_pie_chart(expenses: Iterable[ExpenseLike], title: Optional[str] = None) -> go.Figure:
    breakdown = aggregation.compute_stats(expenses).category_breakdown
    if not breakdown:
        return _empty_figure()
    df = pd.DataFrame(breakdown, columns=["Category", "Amount"])
    fig = px.pie(df, names="Category", values="Amount", hole=0.4, color_discrete_sequence=PALETTE)
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_top_vendors_chart(
    expenses: Iterable[ExpenseLike],
    n: int = 5,
    title: Optional[str] = None,
) -> go.Figure:
    """Horizontal bar chart of the ``n`` vendors with the highest spend."""
    vendors = aggregation.top_vendors(expenses, n=n)
    if not vendors:
        return _empty_figure()
    df = pd.DataFrame(vendors, columns=["Vendor", "Amount"])
    fig = px.bar(df, x="Amount", y="Vendor", orientation="h", color_discrete_sequence=PALETTE)
    fig.update_layout(
        title=title or f"Top {n} vendors",
        xaxis_title="Amount",
        yaxis_title="Vendor",
        yaxis={'categoryorder': 'total ascending'},
    )
    return fig


def create_budget_comparison_chart(
    expenses: Iterable[ExpenseLike],
    budgets: Mapping[str, float],
    title: Optional[str] = None,
) -> go.Figure:
    """Grouped bars of spend against limit per category.

    Over-budget categories are drawn in red.
    """
    comparison = aggregation.budget_vs_actual(expenses, budgets)
    if comparison.empty:
        return _empty_figure()
    spent_colors = ['#ef4444' if over else PALETTE[0] for over in comparison['Over Budget']]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        name="Spent",
        x=comparison['Category'],
        y=comparison['Spent'],
        marker_color=spent_colors,
    ))
    fig.add_trace(go.Bar(
        name="Limit",
        x=comparison['Category'],
        y=comparison['Limit'],
        marker_color=PALETTE[-1],
    ))
    fig.update_layout(
        title=title or "Budget vs actual",
        barmode='group',
        xaxis_title="Category",
        yaxis_title="Amount",
    )
    return fig
