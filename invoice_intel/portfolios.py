"""Portfolio (page) lifecycle helpers.

A user always owns at least one portfolio. The first portfolio doubles as
the default scope: expenses without a portfolio id and budgets carried over
from older versions are attributed to it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, List, Optional, Sequence, Tuple

from .config import DEFAULT_PORTFOLIO_NAME
from .models import ExpenseRecord, Portfolio, now_ms

logger = logging.getLogger(__name__)


class PortfolioNotFoundError(KeyError):
    pass


class LastPortfolioError(ValueError):
    """Raised when deleting a portfolio would leave the user with none."""


def first_portfolio(portfolios: Sequence[Portfolio]) -> Optional[Portfolio]:
    """Return the default portfolio.

    A portfolio flagged ``is_default`` wins; otherwise the earliest created
    one, keeping list order for ties.
    """
    if not portfolios:
        return None
    for portfolio in portfolios:
        if portfolio.is_default:
            return portfolio
    return min(enumerate(portfolios), key=lambda pair: (pair[1].created_at, pair[0]))[1]


def belongs_to(expense: ExpenseRecord, portfolio_id: Optional[str], default_id: Optional[str]) -> bool:
    """Whether ``expense`` is shown and budgeted under ``portfolio_id``.

    Unassigned expenses belong to the default portfolio.
    """
    if expense.portfolio_id:
        return expense.portfolio_id == portfolio_id
    return portfolio_id is not None and portfolio_id == default_id


def _clean_name(name: str) -> str:
    if not name or not name.strip():
        raise ValueError("Portfolio name cannot be empty")
    return name.strip()


def create_portfolio(
    name: str,
    user_id: str,
    is_default: bool = False,
    created_at: Optional[int] = None,
) -> Portfolio:
    return Portfolio(
        id=str(uuid.uuid4()),
        name=_clean_name(name),
        user_id=user_id,
        created_at=created_at if created_at is not None else now_ms(),
        is_default=is_default,
    )


def ensure_default_portfolio(portfolios: Sequence[Portfolio], user_id: str) -> List[Portfolio]:
    """Return ``portfolios``, creating the default one if the user has none."""
    if portfolios:
        return list(portfolios)
    logger.info("Creating default portfolio for user %s", user_id)
    return [create_portfolio(DEFAULT_PORTFOLIO_NAME, user_id, is_default=True)]


def rename_portfolio(portfolios: Sequence[Portfolio], portfolio_id: str, name: str) -> List[Portfolio]:
    cleaned = _clean_name(name)
    if not any(p.id == portfolio_id for p in portfolios):
        raise PortfolioNotFoundError(portfolio_id)
    return [
        Portfolio(p.id, cleaned, p.user_id, p.created_at, p.is_default) if p.id == portfolio_id else p
        for p in portfolios
    ]


def delete_portfolio(
    portfolios: Sequence[Portfolio],
    expenses: Sequence[ExpenseRecord],
    portfolio_id: str,
    purge_image: Optional[Callable[[str], None]] = None,
) -> Tuple[List[Portfolio], List[ExpenseRecord]]:
    """Delete a portfolio and every expense assigned to it.

    Args:
        portfolios: Current portfolios
        expenses: Current expenses
        portfolio_id: Portfolio to delete
        purge_image: Optional callback removing a deleted expense's stored image

    Returns:
        Tuple of the remaining portfolios and the remaining expenses

    Raises:
        PortfolioNotFoundError: If ``portfolio_id`` is unknown
        LastPortfolioError: If it is the user's only portfolio
    """
    target = next((p for p in portfolios if p.id == portfolio_id), None)
    if target is None:
        raise PortfolioNotFoundError(portfolio_id)
    if len(portfolios) <= 1:
        raise LastPortfolioError("Cannot delete the last remaining portfolio")

    remaining_expenses: List[ExpenseRecord] = []
    removed = 0
    for expense in expenses:
        if expense.portfolio_id == portfolio_id:
            removed += 1
            if purge_image is not None:
                purge_image(expense.id)
        else:
            remaining_expenses.append(expense)

    remaining = [p for p in portfolios if p.id != portfolio_id]
    if target.is_default:
        successor = first_portfolio(remaining)
        remaining = [
            Portfolio(p.id, p.name, p.user_id, p.created_at, True) if p is successor else p
            for p in remaining
        ]
    logger.info("Deleted portfolio %s and %d expense(s)", portfolio_id, removed)
    return remaining, remaining_expenses
