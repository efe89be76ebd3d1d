"""Number and currency formatting utilities for Solar Estimator."""

import math
from typing import Optional


def format_currency(value: float, decimals: int = 0, prefix: str = "$") -> str:
    """Format a number as currency string.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "$12.3K").
    """
    if not math.isfinite(value):
        return "N/A"
    if abs(value) >= 1e6:
        return f"{prefix}{value / 1e6:,.{decimals}f}M"
    if abs(value) >= 1e3:
        return f"{prefix}{value / 1e3:,.{decimals}f}K"
    return f"{prefix}{value:,.{decimals}f}"


def format_currency_exact(value: float, decimals: int = 0, prefix: str = "$") -> str:
    """Format a number as exact currency string (e.g., "$18,522")."""
    if not math.isfinite(value):
        return "N/A"
    return f"{prefix}{value:,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a decimal as percentage string.

    Args:
        value: Decimal value (e.g., 0.07 for 7%), or None.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string (e.g., "7.0%") or "N/A".
    """
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value * 100:,.{decimals}f}%"


def format_number(value: float, decimals: int = 1) -> str:
    """Format a number with comma separators (e.g., "11,470.2")."""
    return f"{value:,.{decimals}f}"


def format_kwh(value: float) -> str:
    return f"{value:,.0f} kWh"


def format_years(value: Optional[float]) -> str:
    """Format a value as years.

    Args:
        value: Number of years; None, inf or NaN when never reached.

    Returns:
        Formatted string (e.g., "7.2 years" or "Not achieved").
    """
    if value is None or not math.isfinite(value):
        return "Not achieved"
    return f"{value:.1f} years"
