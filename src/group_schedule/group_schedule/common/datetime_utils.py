from __future__ import annotations

from datetime import date, datetime, time, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from ..core.exceptions import ValidationError


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive server-local wall-clock time.

    All timestamps inside the core are naive local times, so an event and the
    calendar cell it lands in agree on a single definition of "day".
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_iso_datetime(value: str, field_name: str = "datetime") -> datetime:
    """Parse an ISO-8601 date or datetime string into a naive local datetime."""
    if isinstance(value, datetime):
        return to_local_naive(value)
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    try:
        parsed = date_parser.isoparse(str(value).strip())
    except (ValueError, OverflowError):
        raise ValidationError(f"{field_name} is not a valid ISO-8601 value")
    return to_local_naive(parsed)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's last day."""
    return value + relativedelta(months=months)


def months_between(start: datetime, end: datetime) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def start_of_week(value: date) -> date:
    """Sunday on or before ``value``."""
    return value - timedelta(days=(value.weekday() + 1) % 7)
