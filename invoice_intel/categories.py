"""Expense categories recognised across receipts, budgets and reports."""

from __future__ import annotations

from enum import Enum
from typing import Any

ALL_CATEGORIES = "All"


class ExpenseCategory(str, Enum):
    FOOD = "Food & Dining"
    PARKING = "Parking"
    TOLL = "Toll"
    OPTICAL = "Optical"
    DENTAL = "Dental"
    CLINIC = "Clinic"
    MILEAGE = "Mileage"
    AIRPORT = "Airport"
    TRANSPORT = "Transport"
    UTILITY = "Utility Bills"
    REPAIR = "Repair & Maintenance"
    HOUSE_TAX = "House Tax"
    FLIGHT = "Flight"
    HOTEL = "Hotel"
    OTHERS = "Others"

    def __str__(self) -> str:
        return self.value


def parse_category(value: Any) -> ExpenseCategory:
    """Map a stored or extracted label onto :class:`ExpenseCategory`.

    Unknown, empty or non-string values fall back to ``Others`` so a record
    is never rejected because of its category.

    Example:
        >>> parse_category("Parking")
        <ExpenseCategory.PARKING: 'Parking'>
        >>> parse_category("Groceries")
        <ExpenseCategory.OTHERS: 'Others'>
    """
    if isinstance(value, ExpenseCategory):
        return value
    if not isinstance(value, str) or not value.strip():
        return ExpenseCategory.OTHERS
    cleaned = value.strip()
    try:
        return ExpenseCategory(cleaned)
    except ValueError:
        pass
    lowered = cleaned.lower()
    for category in ExpenseCategory:
        if category.value.lower() == lowered or category.name.lower() == lowered:
            return category
    return ExpenseCategory.OTHERS
