"""Modelos tipados para sesiones, puntos agregados y barras del gráfico."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class ActivityType(Enum):
    """Activity series shown side by side in every bin."""

    SITTING = "Sitting"
    EXERCISING = "Exercising"

    @property
    def order(self) -> int:
        """Position used to break ties between series of the same bin."""
        return _ACTIVITY_ORDER[self]


_ACTIVITY_ORDER: dict[ActivityType, int] = {
    ActivityType.SITTING: 0,
    ActivityType.EXERCISING: 1,
}


class Period(Enum):
    """User-selectable display range."""

    DAY = "day"
    THREE_DAYS = "3days"
    WEEK = "week"
    MONTH = "month"
    HALF_YEAR = "6months"
    YEAR = "year"

    @classmethod
    def parse(cls, raw: str) -> Period:
        """Parse a period from its value or member name (case-insensitive).

        Raises:
            ValueError: If the text names no period.
        """
        text = raw.strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown period {raw!r} (expected one of: {choices})")


class AggregationPolicy(Enum):
    """How sessions falling in the same bin are reduced."""

    SUM = "sum"
    MAX_SINGLE_SESSION = "max"


@dataclass(frozen=True)
class Session:
    """One logged interval with sitting and exercising minutes."""

    timestamp: datetime
    sitting_base_minutes: float = 0.0
    sitting_extra_minutes: float = 0.0
    exercising_base_minutes: float = 0.0
    exercising_extra_minutes: float = 0.0
    exercising_timestamp: datetime | None = None

    def __post_init__(self) -> None:
        for name in (
            "sitting_base_minutes",
            "sitting_extra_minutes",
            "exercising_base_minutes",
            "exercising_extra_minutes",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    @property
    def exercising_at(self) -> datetime:
        """Exercising time; same as ``timestamp`` unless timed separately."""
        if self.exercising_timestamp is None:
            return self.timestamp
        return self.exercising_timestamp

    def minutes_for(self, activity: ActivityType) -> tuple[float, float]:
        """Return ``(base, extra)`` minutes of one activity."""
        if activity is ActivityType.SITTING:
            return self.sitting_base_minutes, self.sitting_extra_minutes
        return self.exercising_base_minutes, self.exercising_extra_minutes

    def time_for(self, activity: ActivityType) -> datetime:
        """Return the timestamp used to bin one activity."""
        if activity is ActivityType.SITTING:
            return self.timestamp
        return self.exercising_at


@dataclass(frozen=True)
class AggregatedPoint:
    """Minutes of one activity inside one bin."""

    period_center: datetime
    activity_type: ActivityType
    base_minutes: float
    extra_minutes: float
    interval_label: str | None = None

    @property
    def total_minutes(self) -> float:
        return self.base_minutes + self.extra_minutes


@dataclass(frozen=True)
class AxisLayout:
    """Synthetic X axis: slot per bin center, visible domain and tick labels."""

    slots: dict[datetime, datetime]
    domain: tuple[datetime, datetime]
    labels: list[tuple[datetime, str]] = field(default_factory=list)
    half_offset: timedelta = timedelta(minutes=30)


@dataclass(frozen=True)
class ChartScale:
    """Y axis maximum and grid-line step, in minutes."""

    max_y: float
    grid_step: float

    @property
    def y_domain(self) -> tuple[float, float]:
        return 0.0, self.max_y


@dataclass(frozen=True)
class ChartBar:
    """Render-ready stacked bar (base + extra)."""

    position: datetime
    base_height: float
    extra_height: float
    width: float
    series_kind: ActivityType
    label: str | None = None


@dataclass(frozen=True)
class RenderModel:
    """Everything a presentation layer needs for one period selection."""

    period: Period
    points: list[AggregatedPoint]
    bars: list[ChartBar]
    layout: AxisLayout
    scale: ChartScale
    total_sitting_minutes: float = 0.0
    total_exercising_minutes: float = 0.0
