"""Lectura de exportaciones JSON de sesiones."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from dateutil import parser as dtparser
from dateutil import tz

from activity_chart.model import Session
from activity_chart.sources.base import SessionSource, SourcePaths

logger = logging.getLogger(__name__)

_LOCAL_TZ = tz.tzlocal()

_MINUTE_KEYS: dict[str, str] = {
    "sitting_base": "sitting_base_minutes",
    "sitting_extra": "sitting_extra_minutes",
    "exercising_base": "exercising_base_minutes",
    "exercising_extra": "exercising_extra_minutes",
}


@dataclass(frozen=True)
class JsonSessionPaths(SourcePaths):
    """Path of a sessions JSON export."""


class JsonSessionSource(SessionSource):
    """JSON session export reader."""

    def load_sessions(self) -> list[Session]:
        """Parse the JSON export into typed sessions.

        Returns:
            Sessions sorted by timestamp.

        Raises:
            ValueError: If the JSON document is not a list.
        """
        text = self._paths.path.read_text(encoding="utf-8")
        raw = _extract_json_list(text)
        if not isinstance(raw, list):
            raise ValueError("Sessions JSON must be a list")

        out: list[Session] = []
        skipped = 0
        for item in raw:
            try:
                session = _item_to_session(item)
            except (TypeError, ValueError, OverflowError):
                session = None
            if session is None:
                skipped += 1
                continue
            out.append(session)
        if skipped:
            logger.warning(
                "Skipped %d invalid session entries in %s", skipped, self._paths.path
            )
        out.sort(key=lambda s: s.timestamp)
        return out


def _item_to_session(item: Any) -> Session | None:
    """Convert one JSON object into a Session; None if it has no timestamp."""
    if not isinstance(item, dict):
        return None
    if item.get("timestamp") is None and item.get("epoch") is None:
        return None
    ts = _parse_timestamp(item.get("timestamp"), item.get("epoch"))
    exercising_raw = item.get("exercising_timestamp")
    exercising_ts = (
        _parse_timestamp(exercising_raw, None) if exercising_raw is not None else None
    )
    minutes = {
        field: float(item.get(key) or 0) for key, field in _MINUTE_KEYS.items()
    }
    return Session(timestamp=ts, exercising_timestamp=exercising_ts, **minutes)


def _extract_json_list(text: str) -> Any:
    """Extract JSON array from text, tolerating leading non-JSON (e.g. log lines)."""
    start = text.find("[")
    if start >= 0:
        return json.loads(text[start:])
    return json.loads(text)


def _parse_timestamp(ts_str: Any, epoch: Any) -> datetime:
    """Parse ``YYYY/MM/DD HH:MM`` or ISO 8601 text, else epoch seconds.

    Naive values are taken as local time.
    """
    if isinstance(ts_str, str) and ts_str.strip():
        text = ts_str.strip()
        try:
            dt = datetime.strptime(text, "%Y/%m/%d %H:%M")
        except ValueError:
            dt = dtparser.isoparse(text)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=_LOCAL_TZ)
        return dt

    if epoch is not None:
        return datetime.fromtimestamp(int(epoch), tz=_LOCAL_TZ)

    raise ValueError("Missing timestamp and epoch")
