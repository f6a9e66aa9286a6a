"""
Temporal Range Resolver

Turns a dashboard date selection into a closed interval at day granularity
and parses the raw ISO date strings stored on campaigns and plans.
"""

import calendar
import logging
from datetime import date, datetime, time
from typing import Any, List, Optional

from .models import DateFilter, DateInterval, FilterMode
from .protocols import InvalidRangeError

logger = logging.getLogger(__name__)

# Last instant of a day, millisecond resolution
END_OF_DAY = time(23, 59, 59, 999000)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# (years before, years after) the current year offered by each view
DASHBOARD_YEAR_SPAN = (3, 2)
CALENDAR_YEAR_SPAN = (5, 5)
CAMPAIGN_LIST_YEAR_SPAN = (2, 2)


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse an ISO calendar date (or datetime) string.

    Returns None for anything that is not a valid date; callers exclude
    the record instead of failing.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY)


def day_interval(day: date) -> DateInterval:
    return DateInterval(start=start_of_day(day), end=end_of_day(day))


def month_interval(year: int, month: int) -> DateInterval:
    """Interval of a month; month is zero based"""
    if not 0 <= month <= 11:
        raise InvalidRangeError(f"Month out of range: {month}")
    if not 1 <= year <= 9999:
        raise InvalidRangeError(f"Year out of range: {year}")
    last_day = calendar.monthrange(year, month + 1)[1]
    return DateInterval(
        start=start_of_day(date(year, month + 1, 1)),
        end=end_of_day(date(year, month + 1, last_day)),
    )


def year_interval(year: int) -> DateInterval:
    if not 1 <= year <= 9999:
        raise InvalidRangeError(f"Year out of range: {year}")
    return DateInterval(
        start=start_of_day(date(year, 1, 1)),
        end=end_of_day(date(year, 12, 31)),
    )


def resolve_interval(date_filter: DateFilter) -> DateInterval:
    """
    Resolve a date filter to a closed interval.

    Month mode covers the whole selected month. Range mode parses the two
    date strings; a reversed range is returned as is and matches nothing.

    Raises:
        InvalidRangeError: a range bound does not parse
    """
    if date_filter.mode == FilterMode.MONTH:
        return month_interval(date_filter.year, date_filter.month)

    start = parse_iso_date(date_filter.start)
    end = parse_iso_date(date_filter.end)
    if start is None or end is None:
        raise InvalidRangeError(
            f"Invalid date range: start={date_filter.start!r} end={date_filter.end!r}"
        )
    return DateInterval(start=start_of_day(start), end=end_of_day(end))


def _month_bounds(year: int, month: int) -> dict:
    interval = month_interval(year, month)
    return {
        "start": interval.start.date().isoformat(),
        "end": interval.end.date().isoformat(),
    }


def switch_mode(date_filter: DateFilter, mode: FilterMode) -> DateFilter:
    """
    Change the filter mode.

    Both directions reset start/end to the selected month; a manually
    entered range is discarded when going back to month mode.
    """
    mode = FilterMode(mode)
    update = {"mode": mode}
    update.update(_month_bounds(date_filter.year, date_filter.month))
    return date_filter.model_copy(update=update)


def select_month(date_filter: DateFilter, month: int, year: int) -> DateFilter:
    update = {"mode": FilterMode.MONTH, "month": month, "year": year}
    update.update(_month_bounds(year, month))
    return date_filter.model_copy(update=update)


def month_filter(year: int, month: int) -> DateFilter:
    """Month-mode filter with start/end filled in"""
    return DateFilter(mode=FilterMode.MONTH, month=month, year=year, **_month_bounds(year, month))


def describe_filter(date_filter: DateFilter) -> str:
    """Dashboard header line"""
    if date_filter.mode == FilterMode.MONTH:
        return f"Performance for {MONTH_NAMES[date_filter.month]} {date_filter.year}"
    return "Performance for selected range"


def year_options(current_year: int, span: tuple) -> List[int]:
    before, after = span
    return list(range(current_year - before, current_year + after + 1))


__all__ = [
    "END_OF_DAY",
    "MONTH_NAMES",
    "DASHBOARD_YEAR_SPAN",
    "CALENDAR_YEAR_SPAN",
    "CAMPAIGN_LIST_YEAR_SPAN",
    "parse_iso_date",
    "start_of_day",
    "end_of_day",
    "day_interval",
    "month_interval",
    "year_interval",
    "resolve_interval",
    "switch_mode",
    "select_month",
    "month_filter",
    "describe_filter",
    "year_options",
]
