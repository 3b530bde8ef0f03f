"""
Interval Calculator
Computes the next due date from the last inspection/service date and a named interval.
"""

import calendar
import re
from datetime import date
from typing import Optional, Union

from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.business.compliance.intervals")


class Interval:
    """
    Named recurrence periods and their length in months.

    Names are matched case-insensitively with spaces, dashes and underscores
    ignored, so "6-Monthly", "Six Monthly" and "SixMonthly" are one interval.
    """

    MONTHLY = 'Monthly'
    QUARTERLY = 'Quarterly'
    SIX_MONTHLY = 'SixMonthly'
    ANNUAL = 'Annual'
    BIENNIAL = 'Biennial'

    DEFAULT = MONTHLY

    MONTHS = {
        MONTHLY: 1,
        QUARTERLY: 3,
        SIX_MONTHLY: 6,
        ANNUAL: 12,
        BIENNIAL: 24,
    }

    _ALIASES = {
        'monthly': MONTHLY,
        'quarterly': QUARTERLY,
        'sixmonthly': SIX_MONTHLY,
        '6monthly': SIX_MONTHLY,
        'annual': ANNUAL,
        'biennial': BIENNIAL,
    }

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional[str]:
        """Return the canonical interval for a name, or None when it is not recognised"""
        if not name:
            return None
        key = re.sub(r'[\s\-_]', '', str(name)).lower()
        return cls._ALIASES.get(key)

    @classmethod
    def resolve(cls, name: Optional[str]) -> str:
        """
        Return the canonical interval for a name, falling back to Monthly.

        The fallback is logged as a warning; it never raises.
        """
        interval = cls.parse(name)
        if interval is None:
            logger.warning(f"Unknown schedule interval '{name}', defaulting to {cls.DEFAULT}")
            return cls.DEFAULT
        return interval


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_due(last_date: date, interval: Union[str, None]) -> date:
    """
    Calculate the next due date for an interval.

    Args:
        last_date: Date of the last inspection or service
        interval: Interval name (Monthly, Quarterly, SixMonthly/6-Monthly, Annual, Biennial)

    Returns:
        last_date plus 1, 3, 6, 12 or 24 months. Jan 31 + 1 month is Feb 28/29.
    """
    canonical = Interval.resolve(interval)
    return add_months(last_date, Interval.MONTHS[canonical])
