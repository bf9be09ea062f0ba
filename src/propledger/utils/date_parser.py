"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_DAYS_AGO = re.compile(r"^(\d+)\s+days?\s+ago$")
_IN_DAYS = re.compile(r"^in\s+(\d+)\s+days?$")


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _month_end(day: date) -> date:
    return _month_start(day) + relativedelta(months=1) - timedelta(days=1)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Accepts absolute dates ("2024-01-15", "Jan 15 2024") and relative forms:
    "today", "yesterday", "tomorrow", "N days ago", "in N days",
    "start of month", "end of month", "last month" and "next month"
    (the latter two give the first day of that month).

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = " ".join(date_str.strip().lower().split())
    if not text:
        raise ValueError("Empty date string")
    today = date.today()

    fixed = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "start of month": _month_start(today),
        "end of month": _month_end(today),
        "last month": _month_start(today - relativedelta(months=1)),
        "next month": _month_start(today + relativedelta(months=1)),
    }
    if text in fixed:
        return fixed[text]

    match = _DAYS_AGO.match(text)
    if match:
        return today - timedelta(days=int(match.group(1)))
    match = _IN_DAYS.match(text)
    if match:
        return today + timedelta(days=int(match.group(1)))

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def get_date_range(period: str) -> tuple[date, date]:
    """Get inclusive start and end dates for a named reporting period.

    Args:
        period: One of this-month, last-month, this-quarter, this-year, last-year

    Raises:
        ValueError: If period is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return _month_start(today), today
    if period == "last-month":
        previous = today - relativedelta(months=1)
        return _month_start(previous), _month_end(previous)
    if period == "this-quarter":
        first_month = 3 * ((today.month - 1) // 3) + 1
        return today.replace(month=first_month, day=1), today
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
        "this-quarter, this-year, last-year"
    )
