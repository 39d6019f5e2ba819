"""Escala del eje Y y ancho de barras."""

from __future__ import annotations

import math
from collections.abc import Sequence

from activity_chart.config import BarWidthPolicy, ScaleSettings
from activity_chart.model import AggregatedPoint, ChartScale

_ONE_HOUR_MINUTES = 60.0


def compute_scale(
    points: Sequence[AggregatedPoint], settings: ScaleSettings | None = None
) -> ChartScale:
    """Derive ``max_y`` and the grid step from the tallest stacked bar.

    ``max_y = max(default_floor, peak) * overshoot_factor``.
    """
    settings = settings or ScaleSettings()
    peak = max((p.total_minutes for p in points), default=0.0)
    max_y = max(settings.default_floor, peak) * settings.overshoot_factor
    return ChartScale(max_y=max_y, grid_step=grid_step(max_y, settings))


def grid_step(max_y: float, settings: ScaleSettings | None = None) -> float:
    """Piecewise grid step in minutes.

    <=1h -> 10, <=2h -> 15, <=4h -> 30, otherwise a quarter of ``max_y``
    rounded to the nearest hour and never below one hour.
    """
    settings = settings or ScaleSettings()
    if max_y <= _ONE_HOUR_MINUTES:
        return settings.small_step
    if max_y <= _ONE_HOUR_MINUTES * settings.medium_threshold_hours:
        return settings.medium_step
    if max_y <= _ONE_HOUR_MINUTES * settings.large_threshold_hours:
        return settings.large_step
    rough = max_y / settings.step_divisor
    return max(round_to_nearest_hour(rough), _ONE_HOUR_MINUTES)


def round_to_nearest_hour(minutes: float) -> float:
    """Round minutes to a multiple of 60, halves going up."""
    return math.floor(minutes / _ONE_HOUR_MINUTES + 0.5) * _ONE_HOUR_MINUTES


def bar_width(point_count: int, policy: BarWidthPolicy | None = None) -> float:
    """Bar width for ``point_count`` bars sharing the plot.

    ``[0, low]`` -> ``max_width``; ``(low, medium]`` -> linear from
    ``base_width`` down to ``min_width``; above ``medium`` -> ``min_width``.
    """
    policy = policy or BarWidthPolicy()
    if point_count <= policy.low_threshold:
        return policy.max_width
    if point_count > policy.medium_threshold:
        return policy.min_width
    span = policy.medium_threshold - policy.low_threshold
    if span <= 0:
        return policy.min_width
    fraction = (point_count - policy.low_threshold) / span
    return policy.base_width - fraction * (policy.base_width - policy.min_width)
