"""Exportación a Excel de los puntos agregados del gráfico."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from activity_chart.model import RenderModel

_HEADER_MAP: dict[str, str] = {
    "label": "Bin",
    "period_center": "Center",
    "activity": "Activity",
    "base_minutes": "Base\n(min)",
    "extra_minutes": "Extra\n(min)",
    "total_minutes": "Total\n(min)",
}

_COLUMN_WIDTHS: tuple[tuple[str, int], ...] = (
    ("Bin", 10),
    ("Center", 18),
    ("Activity", 12),
    ("Base\n(min)", 10),
    ("Extra\n(min)", 10),
    ("Total\n(min)", 10),
)

_NUMBER_FORMATS: dict[str, str] = {
    "Center": "dd/mm/yyyy hh:mm",
    "Base\n(min)": "0",
    "Extra\n(min)": "0",
    "Total\n(min)": "0",
}

_THIN_SIDE = Side(style="thin")
_THIN_BORDER = Border(
    left=_THIN_SIDE, right=_THIN_SIDE, top=_THIN_SIDE, bottom=_THIN_SIDE
)
_HEADER_FONT = Font(bold=True)


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the chart workbook."""

    sheet_name: str = "Activity"
    summary_sheet_name: str = "Summary"


def points_frame(model: RenderModel) -> pd.DataFrame:
    """One row per aggregated point, labelled with its axis tick text."""
    columns = list(_HEADER_MAP)
    if not model.points:
        return pd.DataFrame(columns=columns)
    label_at = dict(model.layout.labels)
    rows = [
        {
            "label": label_at.get(
                model.layout.slots.get(p.period_center), p.interval_label
            ),
            "period_center": p.period_center,
            "activity": p.activity_type.value,
            "base_minutes": p.base_minutes,
            "extra_minutes": p.extra_minutes,
            "total_minutes": p.total_minutes,
        }
        for p in model.points
    ]
    return pd.DataFrame(rows, columns=columns)


def summary_frame(model: RenderModel) -> pd.DataFrame:
    """Two-column key/value summary of the selection."""
    return pd.DataFrame(
        {
            "Field": [
                "Period",
                "Sitting (min)",
                "Exercising (min)",
                "Y max (min)",
                "Grid step (min)",
            ],
            "Value": [
                model.period.value,
                model.total_sitting_minutes,
                model.total_exercising_minutes,
                round(model.scale.max_y, 2),
                model.scale.grid_step,
            ],
        }
    )


def _prepare_datetime(export_df: pd.DataFrame) -> pd.DataFrame:
    """Quita timezone de period_center (Excel no admite tz)."""
    export_df = export_df.copy()
    if "period_center" in export_df.columns and not export_df.empty:
        export_df["period_center"] = [
            v.replace(tzinfo=None) if getattr(v, "tzinfo", None) is not None else v
            for v in export_df["period_center"]
        ]
    return export_df


def write_chart_xlsx(model: RenderModel, out_path: Path, layout: ExcelLayout) -> None:
    """Write the aggregated points and a summary to a formatted workbook.

    Args:
        model: Render model of the selected period.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = _prepare_datetime(points_frame(model)).rename(columns=_HEADER_MAP)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        _format_points_sheet(writer.book[layout.sheet_name])
        summary_frame(model).to_excel(
            writer, index=False, sheet_name=layout.summary_sheet_name
        )
        summary = writer.book[layout.summary_sheet_name]
        _style_rows(summary, 1, 1, header=True)
        _style_rows(summary, 2, summary.max_row)


def _style_rows(ws: Any, first: int, last: int, *, header: bool = False) -> None:
    """Centre and border rows ``first..last``; headers are bold and wrapped."""
    alignment = Alignment(horizontal="center", vertical="center", wrap_text=header)
    for row in ws.iter_rows(min_row=first, max_row=last):
        for cell in row:
            cell.alignment = alignment
            cell.border = _THIN_BORDER
            if header:
                cell.font = _HEADER_FONT


def _header_letters(ws: Any) -> dict[str, str]:
    """Map each header text to its column letter."""
    return {str(cell.value): cell.column_letter for cell in ws[1]}


def _format_points_sheet(ws: Any) -> None:
    """Style the points sheet and set its column widths and number formats."""
    _style_rows(ws, 1, 1, header=True)
    _style_rows(ws, 2, ws.max_row)
    letters = _header_letters(ws)
    for header, width in _COLUMN_WIDTHS:
        if header in letters:
            ws.column_dimensions[letters[header]].width = width
    for header, fmt in _NUMBER_FORMATS.items():
        if header not in letters:
            continue
        for cell in ws[letters[header]][1:]:
            cell.number_format = fmt
