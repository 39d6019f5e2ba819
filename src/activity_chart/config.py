"""Configuración del gráfico: tabla por período, escala y ancho de barras."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from activity_chart.model import AggregationPolicy, Period

logger = logging.getLogger(__name__)


class Granularity(Enum):
    """Bin size used by a period."""

    SEGMENT = "segment"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class PeriodSettings:
    """Per-period parameters (bins, synthetic spacing, aggregation)."""

    granularity: Granularity
    stride: timedelta
    half_offset: timedelta
    window_days: int = 0
    window_months: int | None = None
    dense: bool = True
    policy: AggregationPolicy = AggregationPolicy.SUM


@dataclass(frozen=True)
class BarWidthPolicy:
    """Three-tier bar width: wide for few bars, narrow for many."""

    low_threshold: int = 4
    medium_threshold: int = 12
    max_width: float = 30.0
    base_width: float = 24.0
    min_width: float = 4.0


@dataclass(frozen=True)
class ScaleSettings:
    """Y axis scaling constants, in minutes."""

    default_floor: float = 60.0
    overshoot_factor: float = 1.1
    step_divisor: float = 4.0
    small_step: float = 10.0
    medium_step: float = 15.0
    large_step: float = 30.0
    medium_threshold_hours: float = 2.0
    large_threshold_hours: float = 4.0


def _default_periods() -> dict[Period, PeriodSettings]:
    day_stride = timedelta(hours=24)
    day_offset = timedelta(hours=4)
    return {
        Period.DAY: PeriodSettings(
            granularity=Granularity.SEGMENT,
            stride=timedelta(hours=3),
            half_offset=timedelta(minutes=30),
            dense=False,
        ),
        Period.THREE_DAYS: PeriodSettings(
            granularity=Granularity.DAY,
            stride=day_stride,
            half_offset=day_offset,
            window_days=-2,
        ),
        Period.WEEK: PeriodSettings(
            granularity=Granularity.DAY,
            stride=day_stride,
            half_offset=day_offset,
            window_days=-6,
        ),
        Period.MONTH: PeriodSettings(
            granularity=Granularity.DAY,
            stride=day_stride,
            half_offset=day_offset,
            window_days=-29,
        ),
        Period.HALF_YEAR: PeriodSettings(
            granularity=Granularity.WEEK,
            stride=day_stride,
            half_offset=day_offset,
            window_months=-5,
        ),
        Period.YEAR: PeriodSettings(
            granularity=Granularity.MONTH,
            stride=day_stride,
            half_offset=day_offset,
            window_months=-11,
        ),
    }


@dataclass(frozen=True)
class ChartConfig:
    """Complete chart configuration."""

    segment_hours: int = 2
    day_center_hour: int = 12
    domain_padding_factor: float = 2.0
    bar_width: BarWidthPolicy = field(default_factory=BarWidthPolicy)
    scale: ScaleSettings = field(default_factory=ScaleSettings)
    periods: dict[Period, PeriodSettings] = field(default_factory=_default_periods)

    def __post_init__(self) -> None:
        if not 1 <= self.segment_hours <= 24 or 24 % self.segment_hours:
            raise ValueError("segment_hours must be a divisor of 24")
        if not 0 <= self.day_center_hour <= 23:
            raise ValueError("day_center_hour must be within 0-23")
        missing = [p.value for p in Period if p not in self.periods]
        if missing:
            raise ValueError(f"Missing period settings: {', '.join(missing)}")

    def settings_for(self, period: Period) -> PeriodSettings:
        return self.periods[period]


DEFAULT_CONFIG = ChartConfig()


def load_chart_config(path: Path) -> ChartConfig:
    """Load a JSON file of overrides on top of the defaults.

    Unreadable JSON (or a non-object document) falls back to the defaults.

    Args:
        path: JSON configuration file.

    Returns:
        Merged configuration.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If a period or policy name is unknown.
    """
    if not path.exists():
        raise FileNotFoundError(str(path))
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Invalid JSON in %s, using default configuration", path)
        return DEFAULT_CONFIG
    if not isinstance(raw, dict):
        logger.warning("Configuration %s is not an object, using defaults", path)
        return DEFAULT_CONFIG
    return config_from_mapping(raw)


def config_from_mapping(raw: dict[str, Any]) -> ChartConfig:
    """Build a configuration from a plain mapping of overrides."""
    base = DEFAULT_CONFIG
    top: dict[str, Any] = {}
    for key in ("segment_hours", "day_center_hour"):
        if key in raw:
            top[key] = int(raw[key])
    if "domain_padding_factor" in raw:
        top["domain_padding_factor"] = float(raw["domain_padding_factor"])

    bar_width = _merge_section(base.bar_width, raw.get("bar_width"), "bar_width")
    scale = _merge_section(base.scale, raw.get("scale"), "scale")

    periods = dict(base.periods)
    for name, overrides in (raw.get("periods") or {}).items():
        period = Period.parse(str(name))
        periods[period] = _merge_period(periods[period], overrides)

    return replace(base, bar_width=bar_width, scale=scale, periods=periods, **top)


def _merge_section(current: Any, overrides: object, section: str) -> Any:
    if not isinstance(overrides, dict):
        return current
    known = {f.name for f in fields(current)}
    values: dict[str, object] = {}
    for key, value in overrides.items():
        if key not in known:
            logger.warning("Ignoring unknown %s option %r", section, key)
            continue
        values[key] = type(getattr(current, key))(value)
    return replace(current, **values)


def _merge_period(current: PeriodSettings, overrides: object) -> PeriodSettings:
    if not isinstance(overrides, dict):
        return current
    values: dict[str, Any] = {}
    if "dense" in overrides:
        values["dense"] = bool(overrides["dense"])
    if "policy" in overrides:
        values["policy"] = _parse_policy(str(overrides["policy"]))
    return replace(current, **values)


def _parse_policy(raw: str) -> AggregationPolicy:
    text = raw.strip().lower()
    for member in AggregationPolicy:
        if text in (member.value, member.name.lower()):
            return member
    raise ValueError(f"Unknown aggregation policy {raw!r}")
