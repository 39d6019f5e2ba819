"""CLI para calcular el gráfico de actividad de un período y exportarlo."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

from dateutil import parser as dtparser

from activity_chart.config import DEFAULT_CONFIG, load_chart_config
from activity_chart.excel_writer import ExcelLayout, write_chart_xlsx
from activity_chart.model import Period, RenderModel
from activity_chart.pipeline import build_render_model
from activity_chart.sources.base import SessionSource
from activity_chart.sources.csv_export import CsvSessionPaths, CsvSessionSource
from activity_chart.sources.json_export import JsonSessionPaths, JsonSessionSource
from activity_chart.timeutils import local_now


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        prog="activity-chart",
        description="Sitting vs exercising minutes, aggregated per period.",
    )
    parser.add_argument(
        "--sessions",
        required=True,
        help="Sessions export (.json or .csv).",
    )
    parser.add_argument(
        "--period",
        type=_period_arg,
        default=Period.WEEK,
        help="day, 3days, week, month, 6months or year (default: week).",
    )
    parser.add_argument(
        "--now",
        type=_datetime_arg,
        default=None,
        help="Reference time, ISO 8601 (default: current local time).",
    )
    parser.add_argument("--config", default=None, help="JSON configuration file.")
    parser.add_argument("--xlsx", default=None, help="Write the points to XLSX.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging."
    )
    return parser.parse_args(argv)


def _period_arg(raw: str) -> Period:
    try:
        return Period.parse(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _datetime_arg(raw: str) -> datetime:
    try:
        dt = dtparser.isoparse(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid datetime: {raw!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=local_now().tzinfo)
    return dt


def source_for(path: Path) -> SessionSource:
    """Pick the reader by file extension."""
    if path.suffix.lower() == ".csv":
        return CsvSessionSource(CsvSessionPaths(path=path))
    return JsonSessionSource(JsonSessionPaths(path=path))


def format_summary(model: RenderModel) -> list[str]:
    """Human-readable lines describing a render model."""
    lines = [
        f"Period: {model.period.value}",
        f"Sitting: {model.total_sitting_minutes:g} min",
        f"Exercising: {model.total_exercising_minutes:g} min",
        f"Y axis: 0-{model.scale.max_y:g} step {model.scale.grid_step:g}",
    ]
    for bar in model.bars:
        lines.append(
            f"  {bar.label or '-':>8} {bar.series_kind.value:<10} "
            f"{bar.base_height:g}+{bar.extra_height:g}"
        )
    return lines


def main(argv: list[str] | None = None) -> int:
    """Run the chart CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = (
        load_chart_config(Path(ns.config).expanduser())
        if ns.config
        else DEFAULT_CONFIG
    )
    source = source_for(Path(ns.sessions).expanduser().resolve())
    source.validate()
    sessions = source.load_sessions()

    model = build_render_model(sessions, ns.period, now=ns.now, config=config)
    for line in format_summary(model):
        print(line)

    if ns.xlsx:
        out_path = Path(ns.xlsx).expanduser()
        write_chart_xlsx(model, out_path, ExcelLayout())
        print(f"OK: Output: {out_path}")
    return 0
