"""Filtro de sesiones por ventana de período."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from activity_chart.config import DEFAULT_CONFIG, ChartConfig
from activity_chart.model import Period, Session
from activity_chart.timeutils import add_days, add_months, start_of_day, start_of_month


def period_window(
    period: Period, now: datetime, config: ChartConfig | None = None
) -> tuple[datetime, datetime]:
    """Return the inclusive ``(start, now)`` window of a period.

    Day-based periods start ``window_days`` before today's midnight;
    month-based ones start ``window_months`` before the current month start.
    """
    settings = (config or DEFAULT_CONFIG).settings_for(period)
    if settings.window_months is not None:
        start = add_months(start_of_month(now), settings.window_months)
    else:
        start = add_days(start_of_day(now), settings.window_days)
    return start, now


def filter_sessions(
    sessions: Sequence[Session],
    period: Period,
    now: datetime,
    config: ChartConfig | None = None,
) -> list[Session]:
    """Keep sessions whose timestamp falls in the period window."""
    start, end = period_window(period, now, config)
    return [s for s in sessions if start <= s.timestamp <= end]
