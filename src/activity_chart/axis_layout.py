"""Eje X sintético: posiciones equiespaciadas, dominio, etiquetas y barras."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from activity_chart.aggregate import bin_start
from activity_chart.config import DEFAULT_CONFIG, ChartConfig, Granularity
from activity_chart.model import (
    ActivityType,
    AggregatedPoint,
    AxisLayout,
    ChartBar,
    Period,
)
from activity_chart.scale import bar_width
from activity_chart.timeutils import add_days, local_now, start_of_week

SYNTHETIC_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

_WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def axis_label(center: datetime, granularity: Granularity, segment_hours: int) -> str:
    """Tick text for a bin center (locale independent)."""
    if granularity is Granularity.SEGMENT:
        start_hour = bin_start(center, granularity, segment_hours).hour
        return f"{start_hour}-{start_hour + segment_hours}"
    if granularity is Granularity.DAY:
        return _WEEKDAYS[center.weekday()]
    if granularity is Granularity.WEEK:
        monday = start_of_week(center)
        return f"{monday.day} {_MONTHS[monday.month - 1]}"
    return _MONTHS[center.month - 1]


def layout(
    points: Sequence[AggregatedPoint],
    period: Period,
    *,
    now: datetime | None = None,
    config: ChartConfig | None = None,
) -> AxisLayout:
    """Map each distinct bin center to an evenly spaced synthetic position.

    Positions start at ``SYNTHETIC_EPOCH`` and advance by the period stride,
    whatever the real gap between bins. Without points the domain is the
    sentinel ``[now, now + 1 day]``.
    """
    config = config or DEFAULT_CONFIG
    settings = config.settings_for(period)
    half_offset = settings.half_offset

    centers = sorted({p.period_center for p in points})
    if not centers:
        anchor = now or local_now()
        return AxisLayout(
            slots={},
            domain=(anchor, add_days(anchor, 1)),
            labels=[],
            half_offset=half_offset,
        )

    positions = [SYNTHETIC_EPOCH + settings.stride * i for i in range(len(centers))]
    padding = half_offset * config.domain_padding_factor
    labels = [
        (position, axis_label(center, settings.granularity, config.segment_hours))
        for center, position in zip(centers, positions)
    ]
    return AxisLayout(
        slots=dict(zip(centers, positions)),
        domain=(positions[0] - padding, positions[-1] + padding),
        labels=labels,
        half_offset=half_offset,
    )


def calculate_bar_position(point: AggregatedPoint, axis: AxisLayout) -> datetime:
    """Slot of the point shifted left (sitting) or right (exercising).

    A center missing from the slots is returned unchanged.
    """
    slot = axis.slots.get(point.period_center)
    if slot is None:
        return point.period_center
    if point.activity_type is ActivityType.SITTING:
        return slot - axis.half_offset
    return slot + axis.half_offset


def build_bars(
    points: Sequence[AggregatedPoint],
    axis: AxisLayout,
    config: ChartConfig | None = None,
) -> list[ChartBar]:
    """One stacked bar per point, all sharing the width for this bar count."""
    config = config or DEFAULT_CONFIG
    width = bar_width(len(points), config.bar_width)
    label_at = dict(axis.labels)
    bars: list[ChartBar] = []
    for point in points:
        slot = axis.slots.get(point.period_center)  # None keeps interval_label
        bars.append(
            ChartBar(
                position=calculate_bar_position(point, axis),
                base_height=point.base_minutes,
                extra_height=point.extra_minutes,
                width=width,
                series_kind=point.activity_type,
                label=label_at.get(slot, point.interval_label),
            )
        )
    return bars
