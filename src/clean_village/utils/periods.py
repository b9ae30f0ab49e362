"""Calendar-month periods identified by a ``YYYY-MM`` key.

Records store dates as ISO strings and are matched to a period by string
prefix, never by parsing. A malformed date simply fails to match.
"""

from datetime import date, datetime


def period_key(year: int, month: int) -> str:
    """Return the ``YYYY-MM`` key for *year*/*month*."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return f"{year:04d}-{month:02d}"


def in_period(date_text, key: str) -> bool:
    """True when *date_text* starts with the period *key*."""
    return isinstance(date_text, str) and date_text.startswith(key)


def month_index(year: int, month: int) -> int:
    """Months since year 0, for month-granularity comparisons."""
    return year * 12 + (month - 1)


def parse_year_month(value) -> tuple[int, int] | None:
    """Extract (year, month) from a date, datetime, or ISO-like string.

    Returns None when the value cannot be read as a year and month.
    """
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    if not isinstance(value, str) or len(value) < 7 or value[4] != "-":
        return None
    try:
        year, month = int(value[0:4]), int(value[5:7])
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return year, month


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by *delta* months."""
    index = month_index(year, month) + delta
    return index // 12, index % 12 + 1
