"""
Calendar date helpers
All compliance comparisons happen at calendar-day precision, so every value
crossing into the core is normalized to a datetime.date first.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from asset_compliance.buisness.core.errors import ValidationError

# D/M/YYYY or DD/MM/YYYY, day first
DAY_FIRST_PATTERN = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')

# YYYY-MM-DD, optionally followed by a time of day
ISO_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}.*)?$')


def to_calendar_date(value: Any) -> Optional[date]:
    """
    Normalize a date-like value to a calendar date.

    Accepts date, datetime (time of day dropped) and YYYY-MM-DD strings with an
    optional time. Compact (20240304) and week (2024-W10-1) forms are not dates here.
    Anything empty or unparseable becomes None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return _parse_iso(value.strip())
        except ValueError:
            return None
    return None


def parse_import_date(value: Any) -> Optional[date]:
    """
    Parse a date coming from a spreadsheet import.

    The day-first pattern (D/M/YYYY, DD/MM/YYYY) is checked before ISO-8601 so
    "03/04/2024" is always 3 April. Two-digit years match neither form and are
    rejected.

    Args:
        value: Raw cell value (str, date, datetime or None)

    Returns:
        The parsed date, or None when the value is empty

    Raises:
        ValidationError: If the value is present but not a recognised date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    match = DAY_FIRST_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError as e:
            raise ValidationError(f"Invalid date '{text}': {e}") from e

    try:
        return _parse_iso(text)
    except ValueError as e:
        raise ValidationError(f"Unrecognised date '{text}' (expected DD/MM/YYYY or YYYY-MM-DD)") from e


def _parse_iso(text: str) -> date:
    if not ISO_PATTERN.match(text):
        raise ValueError(f"Not a YYYY-MM-DD date: '{text}'")
    try:
        return date.fromisoformat(text)
    except ValueError:
        # Full timestamps, including a trailing Z for UTC
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
