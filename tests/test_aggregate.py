from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from dateutil import tz

from activity_chart.aggregate import (
    aggregate,
    bin_center,
    bin_start,
    build_calendar,
    reduce_bins,
    sessions_to_frame,
)
from activity_chart.config import DEFAULT_CONFIG, Granularity
from activity_chart.model import (
    ActivityType,
    AggregatedPoint,
    AggregationPolicy,
    Period,
    Session,
)
from activity_chart.period_filter import filter_sessions, period_window

NOW = datetime(2025, 12, 15, 20, 0)
SITTING = ActivityType.SITTING
EXERCISING = ActivityType.EXERCISING


def _session(ts: datetime, sb: float, se: float, eb: float, ee: float) -> Session:
    return Session(
        timestamp=ts,
        sitting_base_minutes=sb,
        sitting_extra_minutes=se,
        exercising_base_minutes=eb,
        exercising_extra_minutes=ee,
    )


def test_bin_start_per_granularity() -> None:
    ts = datetime(2025, 12, 10, 13, 45)
    assert bin_start(ts, Granularity.SEGMENT, 2) == datetime(2025, 12, 10, 12)
    assert bin_start(ts, Granularity.SEGMENT, 3) == datetime(2025, 12, 10, 12)
    assert bin_start(ts, Granularity.DAY, 2) == datetime(2025, 12, 10)
    assert bin_start(ts, Granularity.WEEK, 2) == datetime(2025, 12, 8)
    assert bin_start(ts, Granularity.MONTH, 2) == datetime(2025, 12, 1)


def test_bin_center_per_granularity() -> None:
    cfg = DEFAULT_CONFIG
    assert bin_center(datetime(2025, 12, 10, 12), Granularity.SEGMENT, cfg) == (
        datetime(2025, 12, 10, 13)
    )
    assert bin_center(datetime(2025, 12, 10), Granularity.DAY, cfg) == datetime(
        2025, 12, 10, 12
    )
    assert bin_center(datetime(2025, 12, 8), Granularity.WEEK, cfg) == datetime(
        2025, 12, 11, 12
    )
    assert bin_center(datetime(2025, 3, 1), Granularity.MONTH, cfg) == datetime(
        2025, 3, 15, 12
    )


def test_build_calendar_inclusive() -> None:
    days = build_calendar(
        datetime(2025, 12, 13), datetime(2025, 12, 15), Granularity.DAY, 2
    )
    assert days == [
        datetime(2025, 12, 13),
        datetime(2025, 12, 14),
        datetime(2025, 12, 15),
    ]

    months = build_calendar(
        datetime(2025, 1, 1), datetime(2025, 3, 1), Granularity.MONTH, 2
    )
    assert months == [
        datetime(2025, 1, 1),
        datetime(2025, 2, 1),
        datetime(2025, 3, 1),
    ]

    segments = build_calendar(
        datetime(2025, 12, 15), datetime(2025, 12, 15, 6), Granularity.SEGMENT, 2
    )
    assert [s.hour for s in segments] == [0, 2, 4, 6]


def test_sessions_to_frame_one_row_per_activity() -> None:
    sessions = [_session(datetime(2025, 12, 15, 8), 20, 10, 5, 5)]
    frame = sessions_to_frame(sessions, Granularity.SEGMENT, 2)
    assert len(frame) == 2
    assert list(frame["activity"]) == [SITTING.order, EXERCISING.order]
    assert list(frame["base"]) == [20.0, 5.0]
    assert frame.loc[0, "bin_start"] == datetime(2025, 12, 15, 8)


def test_reduce_bins_empty_frame() -> None:
    frame = sessions_to_frame([], Granularity.DAY, 2)
    out = reduce_bins(frame, AggregationPolicy.SUM)
    assert out.empty
    assert list(out.columns) == ["bin_start", "activity", "base", "extra"]


def test_two_hour_segment_sums_sessions() -> None:
    sessions = [
        _session(datetime(2025, 12, 15, 8), 20, 10, 5, 5),
        _session(datetime(2025, 12, 15, 9), 20, 10, 5, 5),
    ]
    points = aggregate(sessions, Period.DAY)
    assert points == [
        AggregatedPoint(datetime(2025, 12, 15, 9), SITTING, 40.0, 20.0, "8-10"),
        AggregatedPoint(datetime(2025, 12, 15, 9), EXERCISING, 10.0, 10.0, "8-10"),
    ]


def test_dense_three_days_zero_fills_missing_day() -> None:
    sessions = [
        _session(datetime(2025, 12, 13, 10), 30, 0, 10, 0),
        _session(datetime(2025, 12, 15, 9), 45, 15, 0, 0),
    ]
    window = period_window(Period.THREE_DAYS, NOW)
    points = aggregate(sessions, Period.THREE_DAYS, dense=True, window=window)

    assert len(points) == 6
    centers = sorted({p.period_center for p in points})
    assert centers == [
        datetime(2025, 12, 13, 12),
        datetime(2025, 12, 14, 12),
        datetime(2025, 12, 15, 12),
    ]
    middle = [p for p in points if p.period_center == centers[1]]
    assert [(p.activity_type, p.total_minutes) for p in middle] == [
        (SITTING, 0.0),
        (EXERCISING, 0.0),
    ]
    assert all(p.interval_label is None for p in points)


def test_dense_covers_window_even_without_data_at_the_edges() -> None:
    sessions = [_session(datetime(2025, 12, 14, 10), 30, 0, 0, 0)]
    window = period_window(Period.WEEK, NOW)
    points = aggregate(sessions, Period.WEEK, window=window)
    assert len(points) == 14
    assert points[0].period_center == datetime(2025, 12, 9, 12)
    assert points[-1].period_center == datetime(2025, 12, 15, 12)


def test_sparse_drops_zero_activity() -> None:
    sessions = [_session(datetime(2025, 12, 15, 11), 30, 5, 0, 0)]
    points = aggregate(sessions, Period.DAY, dense=False)
    assert len(points) == 1
    assert points[0].activity_type is SITTING
    assert points[0].interval_label == "10-12"


def test_dense_day_segments_over_window() -> None:
    sessions = [_session(datetime(2025, 12, 15, 9), 30, 5, 10, 0)]
    window = period_window(Period.DAY, NOW)
    points = aggregate(sessions, Period.DAY, dense=True, window=window)
    labels = [p.interval_label for p in points if p.activity_type is SITTING]
    assert labels[0] == "0-2"
    assert labels[-1] == "20-22"
    assert len(labels) == 11


def test_max_single_session_policy() -> None:
    sessions = [
        _session(datetime(2025, 12, 15, 8, 0), 20, 10, 15, 5),
        _session(datetime(2025, 12, 15, 8, 30), 40, 10, 5, 0),
        _session(datetime(2025, 12, 15, 9, 0), 10, 0, 10, 10),
    ]
    points = aggregate(
        sessions, Period.DAY, policy=AggregationPolicy.MAX_SINGLE_SESSION
    )
    by_type = {p.activity_type: p for p in points}
    assert (by_type[SITTING].base_minutes, by_type[SITTING].extra_minutes) == (40, 10)
    # tie between the 08:00 and 09:00 sessions keeps the earliest
    assert (by_type[EXERCISING].base_minutes, by_type[EXERCISING].extra_minutes) == (
        15,
        5,
    )


def test_policy_defaults_come_from_config() -> None:
    sessions = [
        _session(datetime(2025, 12, 15, 8), 20, 0, 0, 0),
        _session(datetime(2025, 12, 15, 9), 30, 0, 0, 0),
    ]
    summed = aggregate(sessions, Period.DAY)
    assert summed[0].base_minutes == 50


def test_activities_binned_by_their_own_timestamps() -> None:
    session = Session(
        timestamp=datetime(2025, 12, 15, 8, 30),
        exercising_timestamp=datetime(2025, 12, 15, 11, 15),
        sitting_base_minutes=30,
        exercising_base_minutes=10,
    )
    points = aggregate([session], Period.DAY)
    assert [(p.activity_type, p.interval_label) for p in points] == [
        (SITTING, "8-10"),
        (EXERCISING, "10-12"),
    ]


def test_half_year_bins_by_iso_week() -> None:
    sessions = [
        _session(datetime(2025, 12, 9, 10), 30, 0, 0, 0),
        _session(datetime(2025, 12, 12, 10), 20, 0, 0, 0),
    ]
    points = aggregate(sessions, Period.HALF_YEAR, dense=False)
    assert len(points) == 1
    assert points[0].period_center == datetime(2025, 12, 11, 12)
    assert points[0].base_minutes == 50


def test_half_year_dense_over_window() -> None:
    sessions = [_session(datetime(2025, 12, 9, 10), 30, 0, 0, 0)]
    window = period_window(Period.HALF_YEAR, NOW)
    points = aggregate(sessions, Period.HALF_YEAR, window=window)
    assert len(points) == 50
    assert points[0].period_center == datetime(2025, 7, 3, 12)


def test_year_bins_by_month_dense() -> None:
    sessions = [_session(datetime(2025, 3, 20, 10), 30, 0, 10, 0)]
    window = period_window(Period.YEAR, NOW)
    points = aggregate(sessions, Period.YEAR, window=window)
    assert len(points) == 24
    march = [p for p in points if p.period_center == datetime(2025, 3, 15, 12)]
    assert [p.base_minutes for p in march] == [30.0, 10.0]


def test_output_ordered_by_center_then_activity() -> None:
    sessions = [
        _session(datetime(2025, 12, 15, 14), 10, 0, 10, 0),
        _session(datetime(2025, 12, 15, 8), 10, 0, 10, 0),
        _session(datetime(2025, 12, 15, 10), 0, 0, 10, 0),
    ]
    points = aggregate(sessions, Period.DAY)
    keys = [(p.period_center, p.activity_type.order) for p in points]
    assert keys == sorted(keys)
    assert len(points) == 5


def test_aggregate_is_idempotent() -> None:
    sessions = [
        _session(datetime(2025, 12, 13, 10), 30, 5, 10, 0),
        _session(datetime(2025, 12, 15, 9), 45, 15, 0, 2),
        _session(datetime(2025, 12, 15, 18), 20, 0, 5, 5),
    ]
    window = period_window(Period.WEEK, NOW)
    first = aggregate(sessions, Period.WEEK, window=window)
    second = aggregate(sessions, Period.WEEK, window=window)
    assert first == second


def test_sum_is_conserved_per_activity() -> None:
    sessions = [
        _session(datetime(2025, 12, 1, 10), 99, 99, 99, 99),
        _session(datetime(2025, 12, 10, 10), 30, 5, 10, 0),
        _session(datetime(2025, 12, 12, 7), 45, 15, 0, 2),
        _session(datetime(2025, 12, 15, 18), 20, 0, 5, 5),
    ]
    selected = filter_sessions(sessions, Period.WEEK, NOW)
    window = period_window(Period.WEEK, NOW)
    for dense in (True, False):
        points = aggregate(selected, Period.WEEK, dense=dense, window=window)
        for activity in ActivityType:
            expected_base = sum(s.minutes_for(activity)[0] for s in selected)
            expected_extra = sum(s.minutes_for(activity)[1] for s in selected)
            got = [p for p in points if p.activity_type is activity]
            assert sum(p.base_minutes for p in got) == expected_base
            assert sum(p.extra_minutes for p in got) == expected_extra


def test_empty_sessions_yield_no_points_even_dense() -> None:
    window = period_window(Period.MONTH, NOW)
    assert aggregate([], Period.MONTH, dense=True, window=window) == []


PLUS_TWO = timezone(timedelta(hours=2))
UTC_NOW = datetime(2025, 12, 15, 20, 0, tzinfo=timezone.utc)


def _assert_sums_match(points: list[AggregatedPoint], sessions: list[Session]) -> None:
    for activity in ActivityType:
        got = [p for p in points if p.activity_type is activity]
        expected = sum(sum(s.minutes_for(activity)) for s in sessions)
        assert sum(p.total_minutes for p in got) == expected


@pytest.mark.parametrize(
    "period", [Period.DAY, Period.WEEK, Period.HALF_YEAR, Period.YEAR]
)
def test_dense_keeps_sessions_with_other_utc_offset(period: Period) -> None:
    sessions = [
        _session(datetime(2025, 12, 14, 9, tzinfo=PLUS_TWO), 30, 5, 0, 0),
        _session(datetime(2025, 12, 15, 9, tzinfo=PLUS_TWO), 20, 0, 10, 0),
    ]
    selected = filter_sessions(sessions, period, UTC_NOW)
    window = period_window(period, UTC_NOW)
    points = aggregate(selected, period, dense=True, window=window)

    assert selected
    assert any(p.total_minutes > 0 for p in points)
    _assert_sums_match(points, selected)


def test_aware_sessions_binned_in_window_timezone() -> None:
    # 01:00+02:00 on Dec 15 is still Dec 14 in UTC
    sessions = [_session(datetime(2025, 12, 15, 1, tzinfo=PLUS_TWO), 40, 0, 0, 0)]
    window = period_window(Period.WEEK, UTC_NOW)
    points = aggregate(sessions, Period.WEEK, window=window)

    filled = [p for p in points if p.total_minutes > 0]
    assert [p.period_center for p in filled] == [
        datetime(2025, 12, 14, 12, tzinfo=timezone.utc)
    ]
    assert len(points) == 14


def test_dense_week_across_dst_change() -> None:
    madrid = tz.gettz("Europe/Madrid")
    now = datetime(2025, 10, 28, 20, tzinfo=madrid)
    sessions = [
        _session(datetime(2025, 10, day, 10, tzinfo=madrid), 10, day, 5, 0)
        for day in range(22, 29)
    ]
    window = period_window(Period.WEEK, now)
    points = aggregate(sessions, Period.WEEK, window=window)

    assert len(points) == 14
    centers = sorted({p.period_center for p in points})
    assert [c.day for c in centers] == list(range(22, 29))
    assert all((c.hour, c.minute) == (12, 0) for c in centers)
    assert all(p.total_minutes > 0 for p in points)
    _assert_sums_match(points, sessions)


def test_dense_year_with_aware_sessions() -> None:
    sessions = [
        _session(datetime(2025, 3, 20, 10, tzinfo=PLUS_TWO), 30, 0, 10, 0),
        _session(datetime(2025, 11, 30, 23, 30, tzinfo=PLUS_TWO), 15, 0, 0, 0),
    ]
    window = period_window(Period.YEAR, UTC_NOW)
    points = aggregate(sessions, Period.YEAR, window=window)

    assert len(points) == 24
    november = datetime(2025, 11, 15, 12, tzinfo=timezone.utc)
    assert [p.base_minutes for p in points if p.period_center == november] == [
        15.0,
        0.0,
    ]
    _assert_sums_match(points, sessions)


def test_activity_timed_outside_window_is_dropped() -> None:
    sessions = [
        Session(
            timestamp=datetime(2025, 12, 15, 9),
            exercising_timestamp=datetime(2025, 12, 16, 10),
            sitting_base_minutes=30,
            exercising_base_minutes=20,
        ),
        Session(
            timestamp=datetime(2025, 12, 12, 9),
            exercising_timestamp=datetime(2025, 12, 1, 10),
            sitting_base_minutes=15,
            exercising_base_minutes=25,
        ),
    ]
    window = period_window(Period.WEEK, NOW)
    points = aggregate(sessions, Period.WEEK, window=window)

    assert len(points) == 14
    assert points[0].period_center == datetime(2025, 12, 9, 12)
    assert points[-1].period_center == datetime(2025, 12, 15, 12)
    exercising = [p for p in points if p.activity_type is EXERCISING]
    assert sum(p.total_minutes for p in exercising) == 0
    sitting = [p for p in points if p.activity_type is SITTING]
    assert sum(p.total_minutes for p in sitting) == 45
