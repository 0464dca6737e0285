"""Core records shared by the budgeting, reporting and filtering modules.

Everything here is a plain dataclass. Conversion helpers accept the loose
shapes the persistence layer hands back (camelCase or snake_case keys,
numbers stored as strings) and normalise them once at the boundary so the
rest of the package can rely on typed fields.
"""

from __future__ import annotations

import math
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional, Union

import pandas as pd

from .categories import ExpenseCategory, parse_category
from .config import DEFAULT_CURRENCY
from .formatting import format_currency

BudgetMap = Dict[str, float]
CategoryLike = Union[ExpenseCategory, str]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def category_key(category: CategoryLike) -> str:
    """Return the plain label used as a key in budget maps."""
    if isinstance(category, ExpenseCategory):
        return category.value
    return str(category)


def coerce_amount(value: Any) -> float:
    """Coerce a stored amount to a float, treating anything unusable as 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def normalize_date(raw: Optional[str]) -> str:
    """Best-effort conversion of an extracted date to ``YYYY-MM-DD``.

    Empty values become today's date, ISO dates pass through untouched and
    anything pandas can parse is reformatted. Unparseable input is returned
    verbatim rather than rejected.
    """
    if raw is None or not str(raw).strip():
        return date.today().isoformat()
    text = str(raw).strip()
    if _ISO_DATE.match(text):
        return text
    try:
        parsed = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError):
        return str(raw)
    if pd.isna(parsed):
        return str(raw)
    return parsed.date().isoformat()


def new_expense_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


def _first_present(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


def clean_budget_map(raw: Any) -> BudgetMap:
    """Normalise a persisted budget map.

    Non-mapping input yields an empty map; entries whose limit is not a
    finite, non-negative number are dropped.
    """
    if not isinstance(raw, Mapping):
        return {}
    cleaned: BudgetMap = {}
    for key, value in raw.items():
        if value is None or isinstance(value, bool):
            continue
        try:
            limit = float(value)
        except (TypeError, ValueError):
            continue
        if math.isnan(limit) or math.isinf(limit) or limit < 0:
            continue
        cleaned[category_key(key)] = limit
    return cleaned


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class ExpenseRecord:
    id: str
    vendor_name: str
    date: str
    amount: float
    currency: str = DEFAULT_CURRENCY
    category: ExpenseCategory = ExpenseCategory.OTHERS
    summary: str = ""
    created_at: int = 0
    portfolio_id: Optional[str] = None
    receipt_id: Optional[str] = None
    file_name: Optional[str] = None
    # Owned by the local image store, never written to rows.
    image_data: Optional[str] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ExpenseRecord":
        """Build a record from a persistence-layer row."""
        portfolio_id = _first_present(row, "portfolio_id", "portfolioId", "page_id")
        created_at = _first_present(row, "created_at", "createdAt")
        return cls(
            id=str(_first_present(row, "id") or new_expense_id()),
            vendor_name=str(_first_present(row, "vendor_name", "vendorName") or "Unknown Vendor"),
            date=normalize_date(_first_present(row, "date")),
            amount=coerce_amount(_first_present(row, "amount")),
            currency=str(_first_present(row, "currency") or DEFAULT_CURRENCY),
            category=parse_category(_first_present(row, "category")),
            summary=str(_first_present(row, "summary") or ""),
            created_at=int(coerce_amount(created_at)) if created_at is not None else now_ms(),
            portfolio_id=str(portfolio_id) if portfolio_id else None,
            receipt_id=_first_present(row, "receipt_id", "receiptId"),
            file_name=_first_present(row, "file_name", "fileName"),
        )

    def to_row(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Serialise to the snake_case row shape, without image data."""
        row: Dict[str, Any] = {
            'id': self.id,
            'vendor_name': self.vendor_name,
            'date': self.date,
            'amount': self.amount,
            'currency': self.currency,
            'category': category_key(self.category),
            'summary': self.summary,
            'created_at': self.created_at,
            'portfolio_id': self.portfolio_id,
            'receipt_id': self.receipt_id,
            'file_name': self.file_name,
        }
        if user_id:
            row['user_id'] = user_id
        return row


@dataclass
class Portfolio:
    """A named page that expenses and budgets are scoped to."""

    id: str
    name: str
    user_id: str
    created_at: int
    is_default: bool = False


@dataclass
class MultiScopeBudget:
    """Current persisted budget configuration.

    ``portfolios`` maps a portfolio id to its category limits. Categories
    missing from a map have no limit.
    """

    portfolios: Dict[str, BudgetMap] = field(default_factory=dict)
    default_currency: str = DEFAULT_CURRENCY

    def budget_for(self, portfolio_id: Optional[str]) -> BudgetMap:
        if portfolio_id is None:
            return {}
        return self.portfolios.get(portfolio_id, {})

    def with_portfolio(self, portfolio_id: str, budgets: Mapping[str, float]) -> "MultiScopeBudget":
        portfolios = {key: dict(value) for key, value in self.portfolios.items()}
        portfolios[portfolio_id] = clean_budget_map(budgets)
        return MultiScopeBudget(portfolios=portfolios, default_currency=self.default_currency)

    def without_portfolio(self, portfolio_id: str) -> "MultiScopeBudget":
        portfolios = {
            key: dict(value) for key, value in self.portfolios.items() if key != portfolio_id
        }
        return MultiScopeBudget(portfolios=portfolios, default_currency=self.default_currency)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'portfolios': {key: dict(value) for key, value in self.portfolios.items()},
            'defaultCurrency': self.default_currency,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["MultiScopeBudget"]:
        """Read the current payload shape, returning ``None`` if it is malformed."""
        if not isinstance(payload, Mapping):
            return None
        portfolios = payload.get('portfolios') or {}
        if not isinstance(portfolios, Mapping):
            return None
        currency = payload.get('defaultCurrency')
        if not isinstance(currency, str) or not currency.strip():
            currency = DEFAULT_CURRENCY
        return cls(
            portfolios={str(key): clean_budget_map(value) for key, value in portfolios.items()},
            default_currency=currency.strip(),
        )


@dataclass
class BudgetLoad:
    """Result of loading budgets.

    ``legacy_global`` carries a pre-v5 global map forward for the one-time
    backfill into the first portfolio. It is never persisted.
    """

    budget: MultiScopeBudget
    legacy_global: Optional[BudgetMap] = None
    source_version: str = "default"

    @property
    def migrated(self) -> bool:
        return self.source_version not in {"v5", "default"}


@dataclass(frozen=True)
class BudgetWarning:
    category: str
    limit: float
    current_total: float
    amount_added: float
    currency: str
    scope_label: str

    @property
    def projected_total(self) -> float:
        return self.current_total + self.amount_added

    @property
    def message(self) -> str:
        return (
            f"Spending on {self.category} for {self.scope_label} exceeds your "
            f"{format_currency(self.limit, self.currency)} limit."
        )
