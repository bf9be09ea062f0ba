"""Input parsing helpers for propledger."""

from propledger.utils.date_parser import parse_date, get_date_range
from propledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "get_date_range", "parse_amount"]
