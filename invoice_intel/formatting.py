"""Formatting utilities for currency display."""

from __future__ import annotations

from typing import Optional, Union


def format_currency(
    amount: Union[float, int],
    currency: Optional[str] = None,
    include_code: bool = True,
) -> str:
    """Format an amount with thousands separators and a currency code.

    Args:
        amount: The amount to format
        currency: Currency code placed before the amount (e.g. "USD", "RM")
        include_code: Whether to prefix the currency code

    Returns:
        Formatted currency string (e.g., "USD 1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56, "RM")
        'RM 1,234.56'
        >>> format_currency(1234.56, "RM", include_code=False)
        '1,234.56'
    """
    formatted = f"{amount:,.2f}"
    if include_code and currency:
        return f"{currency} {formatted}"
    return formatted
