"""Date parsing utilities for date-of-birth style field values.

Date inputs normally deliver ISO YYYY-MM-DD, but values typed into text
fields or imported from elsewhere arrive in day-first numeric or
English month-name forms. All are normalized to a ``datetime.date``.
"""

import re
from datetime import date
from typing import Any, Optional

# English month names and abbreviations (lowercase) -> month number
_MONTH_NAMES = {
    "january": 1, "jan": 1, "february": 2, "feb": 2,
    "march": 3, "mar": 3, "april": 4, "apr": 4,
    "may": 5, "june": 6, "jun": 6,
    "july": 7, "jul": 7, "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9, "october": 10, "oct": 10,
    "november": 11, "nov": 11, "december": 12, "dec": 12,
}

# ISO: 2000-06-15 (optionally followed by T or space + time)
_RE_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T \s].*)?$")

# Day first: "15 June 2000", "15. Jun 2000"
_RE_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})\.?\s+([A-Za-z]+)\.?,?\s+(\d{4})$")

# Month first: "June 15, 2000", "Jun 15 2000"
_RE_MONTH_DAY_YEAR = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$")

# Numeric with separators: DD.MM.YYYY, DD/MM/YYYY, DD-MM-YYYY
_RE_NUMERIC = re.compile(r"^(\d{1,2})[./\-](\d{1,2})[./\-](\d{4})$")


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    """Return a date, or None if the components are out of range."""
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse a date-of-birth value into a ``date``.

    Supported formats:
    - ``date`` instances pass through
    - ISO: 2000-06-15, 2000-06-15T00:00:00
    - Numeric day-first: 15.06.2000, 15/06/2000, 15-06-2000
    - Month names: "15 June 2000", "June 15, 2000", "15 Jun 2000"

    Args:
        value: Raw field value (string, date, or anything else).

    Returns:
        Parsed date, or None if missing or unparseable.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    m = _RE_ISO.match(text)
    if m:
        return _build_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _RE_NUMERIC.match(text)
    if m:
        return _build_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    m = _RE_DAY_MONTH_YEAR.match(text)
    if m:
        month_num = _MONTH_NAMES.get(m.group(2).lower())
        if month_num is not None:
            return _build_date(int(m.group(3)), month_num, int(m.group(1)))

    m = _RE_MONTH_DAY_YEAR.match(text)
    if m:
        month_num = _MONTH_NAMES.get(m.group(1).lower())
        if month_num is not None:
            return _build_date(int(m.group(3)), month_num, int(m.group(2)))

    return None


def parse_iso_date(value: Any) -> Optional[str]:
    """Parse a value with ``parse_date`` and render it as ISO YYYY-MM-DD."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed is not None else None


def whole_years_between(born: date, today: date) -> int:
    """Count completed years from ``born`` to ``today``.

    One year is subtracted when today's month/day falls before the birth
    month/day. The result is negative when ``born`` is in the future.
    """
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years
