"""Formatting utilities for display values."""


def format_currency(value: float) -> str:
    """Format an amount as whole currency units, e.g. '$3,600'."""
    return f"${round(value):,}"


def format_rate(value: float) -> str:
    """Format a per-hour/per-minute rate with cents, e.g. '$6.67'."""
    return f"${value:,.2f}"


def format_margin(margin: float, revenue: float) -> str:
    """Format margin as a percentage of revenue ('—' with no revenue)."""
    if not revenue:
        return "—"
    return f"{margin / revenue * 100:.1f}%"
