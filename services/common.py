"""
Common utilities and shared functions.
Portfolio id normalization, date parsing, and number formatting.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


def normalize_portfolio_id(portfolio_id: Optional[str], default: str = "main") -> str:
    """
    Portfolio identifier as stored. Surrounding whitespace is dropped and a
    blank id means the default portfolio; case is kept, so "Savings" and
    "savings" stay separate portfolios.

    Examples:
        >>> normalize_portfolio_id(None)
        'main'
        >>> normalize_portfolio_id("  Trading ")
        'Trading'
    """
    if portfolio_id is None:
        return default
    value = str(portfolio_id).strip()
    return value or default


def parse_date(value: Any) -> date:
    """
    Convert stored or user input into a calendar date.

    Accepts date, datetime, and ISO strings ("2024-05-01" or
    "2024-05-01T10:00:00.000Z" as written by the browser app).

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValueError(f"Invalid date: {value!r}")


def format_fiat(value: float, currency: str = "COP", decimals: int = 0) -> str:
    """
    Format a fiat amount for display.

    Examples:
        >>> format_fiat(1234567.8)
        '$1,234,568 COP'
        >>> format_fiat(-50000)
        '-$50,000 COP'
    """
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f} {currency}"


def format_units(value: float, symbol: str = "USDT") -> str:
    """Format an asset quantity with two decimals."""
    return f"{value:,.2f} {symbol}"


def format_pct(value: float) -> str:
    return f"{value:+.2f}%"


def transaction_label(tx, currency: str = "COP") -> str:
    """One-line description of a ledger entry for pickers."""
    return (
        f"{tx.date.isoformat()} | {tx.type.value} | "
        f"{format_fiat(tx.amount_fiat, currency)} @ {format_fiat(tx.price_per_unit, currency)}"
    )
