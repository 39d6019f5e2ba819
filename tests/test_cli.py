"""Tests for CLI entrypoints."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from activity_chart import cli
from activity_chart.model import Period
from activity_chart.sources.csv_export import CsvSessionSource
from activity_chart.sources.json_export import JsonSessionSource


def _write_sessions(tmp_path: Path) -> Path:
    data = [
        {"timestamp": "2025/12/10 10:00", "sitting_base": 30, "sitting_extra": 5},
        {"timestamp": "2025/12/15 09:00", "sitting_base": 45, "exercising_base": 12},
    ]
    p = tmp_path / "sessions.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def test_parse_args_custom_values() -> None:
    ns = cli.parse_args(
        ["--sessions", "s.json", "--period", "3days", "--now", "2025-12-15T20:00"]
    )
    assert ns.sessions == "s.json"
    assert ns.period is Period.THREE_DAYS
    assert ns.now.hour == 20
    assert ns.now.tzinfo is not None
    assert ns.config is None
    assert ns.xlsx is None


def test_parse_args_defaults_to_week() -> None:
    assert cli.parse_args(["--sessions", "s.json"]).period is Period.WEEK


def test_parse_args_rejects_unknown_period() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["--sessions", "s.json", "--period", "fortnight"])


def test_source_for_picks_reader_by_suffix() -> None:
    assert isinstance(cli.source_for(Path("a.CSV")), CsvSessionSource)
    assert isinstance(cli.source_for(Path("a.json")), JsonSessionSource)


def test_main_happy_path(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    sessions = _write_sessions(tmp_path)
    out = tmp_path / "chart.xlsx"

    code = cli.main(
        [
            "--sessions",
            str(sessions),
            "--period",
            "week",
            "--now",
            "2025-12-15T20:00",
            "--xlsx",
            str(out),
        ]
    )

    assert code == 0
    printed = capsys.readouterr().out
    assert "Period: week" in printed
    assert "Sitting: 80 min" in printed
    assert "Exercising: 12 min" in printed
    assert "OK: Output:" in printed
    assert out.exists()


def test_main_with_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    sessions = _write_sessions(tmp_path)
    config = tmp_path / "chart.json"
    config.write_text(json.dumps({"scale": {"default_floor": 200}}), encoding="utf-8")

    cli.main(
        [
            "--sessions",
            str(sessions),
            "--now",
            "2025-12-15T20:00",
            "--config",
            str(config),
        ]
    )
    assert "Y axis: 0-220 step 30" in capsys.readouterr().out


def test_main_propagates_validation_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        cli.main(["--sessions", str(tmp_path / "missing.json")])
