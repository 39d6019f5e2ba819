"""Lectura de sesiones desde CSV (columnas detectadas por nombre)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import cast

import pandas as pd
from dateutil import tz

from activity_chart.model import Session
from activity_chart.sources.base import SessionSource, SourcePaths

logger = logging.getLogger(__name__)

_LOCAL_TZ = tz.tzlocal()

_COLUMN_PATTERNS: dict[str, list[str]] = {
    "timestamp": [r"^timestamp$", r"^created_?at$", r"^date_?time$", r"^sitting_?at$"],
    "exercising_timestamp": [r"^exercising_?(at|timestamp)$"],
    "sitting_base_minutes": [r"^sitting_?(base|overall)"],
    "sitting_extra_minutes": [r"^sitting_?(extra|overtime)"],
    "exercising_base_minutes": [r"^exercising_?(base|overall)"],
    "exercising_extra_minutes": [r"^exercising_?(extra|overtime)"],
}


@dataclass(frozen=True)
class CsvSessionPaths(SourcePaths):
    """Path of a sessions CSV export."""


class CsvSessionSource(SessionSource):
    """CSV session export reader."""

    def load_sessions(self) -> list[Session]:
        """Load sessions from the CSV file.

        Rows with an unparseable timestamp or negative minutes are skipped.

        Raises:
            ValueError: If no timestamp column can be found.
        """
        df = pd.read_csv(self._paths.path)
        return frame_to_sessions(df)


def frame_to_sessions(df: pd.DataFrame) -> list[Session]:
    """Convert a raw export frame into sessions sorted by timestamp."""
    if df.empty:
        return []

    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    cols = list(df.columns)
    mapping = {
        field: _find_col(cols, patterns) for field, patterns in _COLUMN_PATTERNS.items()
    }
    ts_col = mapping["timestamp"]
    if ts_col is None:
        raise ValueError(f"No timestamp column among {cols}")

    out: list[Session] = []
    skipped = 0
    for _, row in df.iterrows():
        ts = _to_datetime(row[ts_col])
        if ts is None:
            skipped += 1
            continue
        ex_col = mapping["exercising_timestamp"]
        exercising_ts = _to_datetime(row[ex_col]) if ex_col else None
        minutes = {
            field: _minutes(row, mapping[field])
            for field in (
                "sitting_base_minutes",
                "sitting_extra_minutes",
                "exercising_base_minutes",
                "exercising_extra_minutes",
            )
        }
        try:
            out.append(
                Session(timestamp=ts, exercising_timestamp=exercising_ts, **minutes)
            )
        except ValueError:
            skipped += 1

    if skipped:
        logger.warning("Skipped %d invalid CSV rows", skipped)
    out.sort(key=lambda s: s.timestamp)
    return out


def _find_col(columns: list[str], patterns: list[str]) -> str | None:
    for pat in patterns:
        rx = re.compile(pat, re.IGNORECASE)
        for c in columns:
            if rx.search(c):
                return c
    return None


def _minutes(row: pd.Series, column: str | None) -> float:
    if not column:
        return 0.0
    value = pd.to_numeric(row[column], errors="coerce")
    if pd.isna(value):
        return 0.0
    return float(value)


def _to_datetime(value: object) -> datetime | None:
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    dt = cast(datetime, parsed.to_pydatetime())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_LOCAL_TZ)
    return dt
