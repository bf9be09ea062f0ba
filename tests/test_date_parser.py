"""Tests for date parsing."""

from datetime import date, timedelta

import pytest

from propledger.utils.date_parser import get_date_range, parse_date


def test_absolute_dates():
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("  2024-02-29 ") == date(2024, 2, 29)


def test_relative_days():
    today = date.today()
    assert parse_date("today") == today
    assert parse_date("Yesterday") == today - timedelta(days=1)
    assert parse_date("tomorrow") == today + timedelta(days=1)
    assert parse_date("3 days ago") == today - timedelta(days=3)
    assert parse_date("in 30 days") == today + timedelta(days=30)
    assert parse_date("in  1 day") == today + timedelta(days=1)


def test_month_boundaries():
    today = date.today()
    start = parse_date("start of month")
    end = parse_date("end of month")
    assert start == today.replace(day=1)
    assert end.month == today.month
    assert (end + timedelta(days=1)).day == 1
    assert parse_date("last month").day == 1
    assert parse_date("next month") > end


@pytest.mark.parametrize("text", ["", "not a date", "2024-13-45"])
def test_invalid_dates(text):
    with pytest.raises(ValueError):
        parse_date(text)


def test_date_ranges():
    today = date.today()
    assert get_date_range("this-month") == (today.replace(day=1), today)
    assert get_date_range("this-year") == (date(today.year, 1, 1), today)
    assert get_date_range("last-year") == (date(today.year - 1, 1, 1), date(today.year - 1, 12, 31))

    start, end = get_date_range("last-month")
    assert start.day == 1
    assert end == today.replace(day=1) - timedelta(days=1)

    quarter_start, _ = get_date_range("this-quarter")
    assert quarter_start.month in (1, 4, 7, 10)


def test_unknown_period():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("fortnight")
