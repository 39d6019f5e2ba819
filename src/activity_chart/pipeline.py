"""Pipeline completo: filtro -> agregación -> eje X -> escala -> barras."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from activity_chart.aggregate import aggregate
from activity_chart.axis_layout import build_bars, layout
from activity_chart.config import DEFAULT_CONFIG, ChartConfig
from activity_chart.model import (
    ActivityType,
    AggregatedPoint,
    Period,
    RenderModel,
    Session,
)
from activity_chart.period_filter import filter_sessions, period_window
from activity_chart.scale import compute_scale
from activity_chart.timeutils import local_now

logger = logging.getLogger(__name__)


def build_render_model(
    sessions: Sequence[Session],
    period: Period,
    *,
    now: datetime | None = None,
    config: ChartConfig | None = None,
) -> RenderModel:
    """Recompute everything the chart needs for one period selection.

    Args:
        sessions: All loaded sessions (in memory).
        period: Selected period.
        now: Reference time. Defaults to the current time, local-aware when
            the sessions carry timezones and naive when they do not.
        config: Chart configuration.

    Returns:
        Render model with points, bars, axis layout, scale and totals.

    Raises:
        ValueError: If naive and aware datetimes are mixed.
    """
    config = config or DEFAULT_CONFIG
    now = _reference_now(sessions, now)

    window = period_window(period, now, config)
    selected = filter_sessions(sessions, period, now, config)
    logger.debug(
        "Period %s window %s - %s: %d of %d sessions",
        period.value,
        window[0].isoformat(),
        window[1].isoformat(),
        len(selected),
        len(sessions),
    )

    points = aggregate(selected, period, window=window, config=config)
    axis = layout(points, period, now=now, config=config)
    scale = compute_scale(points, config.scale)
    bars = build_bars(points, axis, config)

    return RenderModel(
        period=period,
        points=points,
        bars=bars,
        layout=axis,
        scale=scale,
        total_sitting_minutes=total_minutes(points, ActivityType.SITTING),
        total_exercising_minutes=total_minutes(points, ActivityType.EXERCISING),
    )


def total_minutes(points: Sequence[AggregatedPoint], activity: ActivityType) -> float:
    """Base plus extra minutes of one activity across all points."""
    return sum(p.total_minutes for p in points if p.activity_type is activity)


def _reference_now(sessions: Sequence[Session], now: datetime | None) -> datetime:
    aware = {
        ts.tzinfo is not None
        for s in sessions
        for ts in (s.timestamp, s.exercising_at)
    }
    if now is not None:
        aware.add(now.tzinfo is not None)
    if len(aware) > 1:
        raise ValueError("Cannot mix naive and timezone-aware datetimes")
    if now is not None:
        return now
    if aware == {False}:
        return datetime.now()
    return local_now()
