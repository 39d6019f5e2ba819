"""Aritmética de calendario para alinear bins (día, semana ISO, mes)."""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil import tz
from dateutil.relativedelta import relativedelta

_LOCAL_TZ = tz.tzlocal()


class CalendarComputationError(ValueError):
    """A bin boundary fell outside the representable date range."""


def local_now() -> datetime:
    """Current time in the local timezone."""
    return datetime.now(tz=_LOCAL_TZ)


def start_of_day(dt: datetime) -> datetime:
    """Midnight of the same calendar day (tzinfo kept)."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(dt: datetime) -> datetime:
    """Monday 00:00 of the ISO week containing ``dt``."""
    return add_days(start_of_day(dt), -dt.weekday())


def start_of_month(dt: datetime) -> datetime:
    """First day of the month at 00:00."""
    return start_of_day(dt).replace(day=1)


def add_days(dt: datetime, days: int) -> datetime:
    """Shift by whole calendar days.

    Raises:
        CalendarComputationError: If the result is out of range.
    """
    return _shift(dt, relativedelta(days=days))


def add_hours(dt: datetime, hours: float) -> datetime:
    """Shift by (possibly fractional) hours.

    Raises:
        CalendarComputationError: If the result is out of range.
    """
    try:
        return dt + timedelta(hours=hours)
    except OverflowError as exc:
        raise CalendarComputationError(f"Cannot add {hours}h to {dt}") from exc


def add_months(dt: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the month length.

    Raises:
        CalendarComputationError: If the result is out of range.
    """
    return _shift(dt, relativedelta(months=months))


def _shift(dt: datetime, delta: relativedelta) -> datetime:
    try:
        return dt + delta
    except (OverflowError, ValueError) as exc:
        raise CalendarComputationError(f"Cannot shift {dt} by {delta}") from exc
