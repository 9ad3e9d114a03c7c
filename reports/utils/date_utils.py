"""
Date Range Utilities for Reports

Reports take a ``period`` (daily, weekly, monthly, quarterly, yearly or
custom). Anything else falls back to the last 30 days.
"""

from datetime import datetime, timedelta, date
from typing import Tuple, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from django.utils import timezone

PERIODS = ('daily', 'weekly', 'monthly', 'quarterly', 'yearly', 'custom')
DEFAULT_DAYS = 30


class DateRangeValidator:
    """Validate and normalize date ranges for reports"""

    @staticmethod
    def parse_date(value) -> Optional[date]:
        """
        Parse a YYYY-MM-DD (or ISO datetime) string; dates pass through.
        """
        if not value:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date_parser.isoparse(str(value)).date()
        except (ValueError, OverflowError):
            return None

    @staticmethod
    def validate(start, end, max_days: int = 731) -> Tuple[bool, Optional[str]]:
        """
        Returns:
            (is_valid, error_message)
        """
        if start is None or end is None:
            return False, "Dates must use the YYYY-MM-DD format"
        if start > end:
            return False, "start_date must be before or equal to end_date"
        if (end - start).days > max_days:
            return False, f"Date range cannot exceed {max_days} days"
        return True, None


def get_date_range(period: str = None, start_date=None, end_date=None, today: date = None) -> Tuple[date, date]:
    """
    Resolve a report period to an inclusive (start, end) date pair.

    Args:
        period: One of PERIODS; unknown or missing means the last 30 days
        start_date, end_date: Used by ``custom``; either may be omitted
        today: Reference date, defaults to the local date

    Raises:
        ValueError: A custom date could not be parsed
    """
    today = today or timezone.localdate()

    if period == 'daily':
        return today, today
    if period == 'weekly':
        return today - timedelta(days=7), today
    if period == 'monthly':
        return today.replace(day=1), today
    if period == 'quarterly':
        first_month = (today.month - 1) // 3 * 3 + 1
        return today.replace(month=first_month, day=1), today
    if period == 'yearly':
        return today.replace(month=1, day=1), today
    if period == 'custom':
        start = DateRangeValidator.parse_date(start_date) if start_date else today - timedelta(days=DEFAULT_DAYS)
        end = DateRangeValidator.parse_date(end_date) if end_date else today
        if start is None or end is None:
            raise ValueError("Dates must use the YYYY-MM-DD format")
        return start, end

    return today - timedelta(days=DEFAULT_DAYS), today


def get_previous_range(start: date, end: date, period: str = None) -> Tuple[date, date]:
    """
    The comparison window immediately before (start, end).

    Calendar periods compare against the previous calendar period; other
    ranges against a window of the same length.
    """
    if period == 'monthly':
        previous_start = start - relativedelta(months=1)
        return previous_start, min(previous_start + (end - start), start - timedelta(days=1))
    if period == 'quarterly':
        previous_start = start - relativedelta(months=3)
        return previous_start, min(previous_start + (end - start), start - timedelta(days=1))
    if period == 'yearly':
        previous_start = start - relativedelta(years=1)
        return previous_start, min(previous_start + (end - start), start - timedelta(days=1))

    length = (end - start).days
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length), previous_end


def get_period_description(start_date: date, end_date: date) -> str:
    """Human-readable period label for exported files."""
    if start_date == end_date:
        return start_date.strftime('%B %d, %Y')
    if start_date.year == end_date.year:
        return f"{start_date.strftime('%b %d')} - {end_date.strftime('%b %d, %Y')}"
    return f"{start_date.strftime('%b %d, %Y')} - {end_date.strftime('%b %d, %Y')}"
