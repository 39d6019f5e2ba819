"""Agregación de sesiones en bins del período (segmento, día, semana, mes)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo

import pandas as pd

from activity_chart.config import DEFAULT_CONFIG, ChartConfig, Granularity
from activity_chart.model import (
    ActivityType,
    AggregatedPoint,
    AggregationPolicy,
    Period,
    Session,
)
from activity_chart.timeutils import (
    add_days,
    add_hours,
    start_of_day,
    start_of_month,
    start_of_week,
)

logger = logging.getLogger(__name__)

_FRAME_COLUMNS = ["bin_start", "activity", "timestamp", "base", "extra"]
_KEYS = ["bin_start", "activity"]
_BY_ORDER: dict[int, ActivityType] = {a.order: a for a in ActivityType}


def bin_start(ts: datetime, granularity: Granularity, segment_hours: int) -> datetime:
    """Start of the bin containing ``ts``."""
    if granularity is Granularity.SEGMENT:
        hour = ts.hour // segment_hours * segment_hours
        return start_of_day(ts).replace(hour=hour)
    if granularity is Granularity.DAY:
        return start_of_day(ts)
    if granularity is Granularity.WEEK:
        return start_of_week(ts)
    return start_of_month(ts)


def bin_center(
    start: datetime, granularity: Granularity, config: ChartConfig
) -> datetime:
    """Representative timestamp of a bin.

    Segments use their midpoint; days use ``day_center_hour``; weeks use
    Thursday and months the 15th, both at ``day_center_hour``.
    """
    if granularity is Granularity.SEGMENT:
        return add_hours(start, config.segment_hours / 2)
    if granularity is Granularity.DAY:
        return add_hours(start, config.day_center_hour)
    if granularity is Granularity.WEEK:
        return add_hours(add_days(start, 3), config.day_center_hour)
    return add_hours(add_days(start, 14), config.day_center_hour)


def interval_label(
    start: datetime, granularity: Granularity, segment_hours: int
) -> str | None:
    """Label like ``"8-10"`` for intraday segments, None otherwise."""
    if granularity is not Granularity.SEGMENT:
        return None
    return f"{start.hour}-{start.hour + segment_hours}"


def sessions_to_frame(
    sessions: Sequence[Session],
    granularity: Granularity,
    segment_hours: int,
    *,
    zone: tzinfo | None = None,
    window: tuple[datetime, datetime] | None = None,
) -> pd.DataFrame:
    """Long-format frame: one row per session and activity type.

    Each activity is binned by its own timestamp, and activities timed
    outside ``window`` are left out. Aware timestamps are converted to
    ``zone`` first so every bin boundary is taken in the same clock.
    ``bin_start`` and ``timestamp`` hold ``datetime`` objects (object dtype).
    """
    bins: list[datetime] = []
    times: list[datetime] = []
    orders: list[int] = []
    bases: list[float] = []
    extras: list[float] = []
    for session in sessions:
        for activity in ActivityType:
            ts = session.time_for(activity)
            if zone is not None and ts.tzinfo is not None:
                ts = ts.astimezone(zone)
            if window is not None and not window[0] <= ts <= window[1]:
                continue
            base, extra = session.minutes_for(activity)
            bins.append(bin_start(ts, granularity, segment_hours))
            times.append(ts)
            orders.append(activity.order)
            bases.append(float(base))
            extras.append(float(extra))

    return pd.DataFrame(
        {
            "bin_start": pd.Series(bins, dtype=object),
            "activity": pd.Series(orders, dtype="int64"),
            "timestamp": pd.Series(times, dtype=object),
            "base": pd.Series(bases, dtype="float64"),
            "extra": pd.Series(extras, dtype="float64"),
        },
        columns=_FRAME_COLUMNS,
    )


def build_calendar(
    first: datetime, last: datetime, granularity: Granularity, segment_hours: int
) -> list[datetime]:
    """Every bin start from ``first`` to ``last`` inclusive.

    Ranges are generated in wall-clock time so days stay aligned to
    midnight across DST changes; the tzinfo of ``first`` is reattached.
    """
    freq = {
        Granularity.SEGMENT: pd.DateOffset(hours=segment_hours),
        Granularity.DAY: pd.DateOffset(days=1),
        Granularity.WEEK: pd.DateOffset(weeks=1),
        Granularity.MONTH: pd.DateOffset(months=1),
    }[granularity]
    stamps = pd.date_range(
        start=first.replace(tzinfo=None), end=last.replace(tzinfo=None), freq=freq
    )
    return [ts.to_pydatetime().replace(tzinfo=first.tzinfo) for ts in stamps]


def reduce_bins(frame: pd.DataFrame, policy: AggregationPolicy) -> pd.DataFrame:
    """Reduce rows to one per (bin, activity).

    ``SUM`` adds base and extra minutes; ``MAX_SINGLE_SESSION`` keeps the row
    with the largest base+extra (the earliest one on ties).
    """
    if frame.empty:
        return pd.DataFrame(columns=[*_KEYS, "base", "extra"])

    if policy is AggregationPolicy.SUM:
        out = frame.groupby(_KEYS, as_index=False, sort=False).agg(
            base=("base", "sum"),
            extra=("extra", "sum"),
        )
    else:
        ordered = frame.sort_values("timestamp", kind="mergesort").reset_index(
            drop=True
        )
        ordered["total"] = ordered["base"] + ordered["extra"]
        winners = ordered.groupby(_KEYS, sort=False)["total"].idxmax()
        out = ordered.loc[winners.to_numpy(), [*_KEYS, "base", "extra"]]
    return out.reset_index(drop=True)


def aggregate(
    sessions: Sequence[Session],
    period: Period,
    *,
    policy: AggregationPolicy | None = None,
    dense: bool | None = None,
    window: tuple[datetime, datetime] | None = None,
    config: ChartConfig | None = None,
) -> list[AggregatedPoint]:
    """Group sessions into period bins and reduce each activity separately.

    Args:
        sessions: Sessions already restricted to the period window.
        period: Selected period; decides bin granularity.
        policy: Reduction inside a bin (defaults to the period setting).
        dense: Emit zero-valued points for every bin in range (defaults to
            the period setting). The range is the bins covering ``window``,
            or the populated bins when no window is given.
        window: Inclusive ``(start, end)`` range. Activities timed outside it
            are dropped, and dense mode fills the bins it covers. Aware
            timestamps are binned in the timezone of ``end``.
        config: Chart configuration.

    Returns:
        Points ordered by ``period_center`` then activity type.
    """
    config = config or DEFAULT_CONFIG
    settings = config.settings_for(period)
    policy = settings.policy if policy is None else policy
    dense = settings.dense if dense is None else dense
    granularity = settings.granularity
    seg = config.segment_hours

    zone = _reference_zone(sessions, window)
    frame = sessions_to_frame(sessions, granularity, seg, zone=zone, window=window)
    if frame.empty:
        return []

    reduced = reduce_bins(frame, policy)

    if dense:
        first = _as_datetime(min(reduced["bin_start"]))
        last = _as_datetime(max(reduced["bin_start"]))
        if window is not None:
            first = min(first, bin_start(window[0], granularity, seg))
            last = max(last, bin_start(window[1], granularity, seg))
        calendar = build_calendar(first, last, granularity, seg)
        grid = pd.DataFrame(
            {
                "bin_start": pd.Series(
                    [b for b in calendar for _ in ActivityType], dtype=object
                ),
                "activity": [a.order for _ in calendar for a in ActivityType],
            }
        )
        reduced["bin_start"] = reduced["bin_start"].astype(object)
        reduced = grid.merge(reduced, on=_KEYS, how="left")
        reduced[["base", "extra"]] = reduced[["base", "extra"]].fillna(0.0)
    else:
        reduced = reduced[(reduced["base"] + reduced["extra"]) > 0]

    reduced = reduced.sort_values(_KEYS, kind="mergesort")
    points: list[AggregatedPoint] = []
    for row in reduced.itertuples(index=False):
        start = _as_datetime(row.bin_start)
        points.append(
            AggregatedPoint(
                period_center=bin_center(start, granularity, config),
                activity_type=_BY_ORDER[int(row.activity)],
                base_minutes=float(row.base),
                extra_minutes=float(row.extra),
                interval_label=interval_label(start, granularity, seg),
            )
        )
    logger.debug(
        "Aggregated %d sessions into %d points (%s, %s, dense=%s)",
        len(sessions),
        len(points),
        period.value,
        policy.value,
        dense,
    )
    return points


def _reference_zone(
    sessions: Sequence[Session], window: tuple[datetime, datetime] | None
) -> tzinfo | None:
    """Timezone bins are computed in: the window end's, else the first aware one."""
    if window is not None:
        return window[1].tzinfo
    for session in sessions:
        if session.timestamp.tzinfo is not None:
            return session.timestamp.tzinfo
    return None


def _as_datetime(value: datetime) -> datetime:
    # Timestamp arithmetic is absolute; centers need wall-clock hours
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value
