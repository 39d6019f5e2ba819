"""App Kivy: selector de período y gráfico de barras apiladas."""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from activity_chart.cli import source_for
from activity_chart.config import DEFAULT_CONFIG, ChartConfig
from activity_chart.model import ActivityType, Period, RenderModel, Session
from activity_chart.pipeline import build_render_model

PERIOD_TITLES: dict[Period, str] = {
    Period.DAY: "1 day",
    Period.THREE_DAYS: "3 days",
    Period.WEEK: "Week",
    Period.MONTH: "Month",
    Period.HALF_YEAR: "6 months",
    Period.YEAR: "Year",
}

BASE_COLOR = (0.5, 0.5, 0.5, 0.8)
EXTRA_COLORS: dict[ActivityType, tuple[float, float, float, float]] = {
    ActivityType.SITTING: (1.0, 0.23, 0.19, 0.8),
    ActivityType.EXERCISING: (0.2, 0.78, 0.35, 0.8),
}


def run_app(sessions: Sequence[Session], config: ChartConfig | None = None) -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.graphics import Color, Line, Rectangle
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.label import Label
    from kivy.uix.togglebutton import ToggleButton
    from kivy.uix.widget import Widget

    chart_config = config or DEFAULT_CONFIG

    class ChartWidget(Widget):
        """Draws bars, grid lines and axis labels of a render model."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.model: RenderModel | None = None
            self.bind(pos=self._redraw, size=self._redraw)

        def show(self, model: RenderModel) -> None:
            self.model = model
            self._redraw()

        def _redraw(self, *_args: object) -> None:
            self.canvas.clear()
            self.clear_widgets()
            if self.model is None:
                return
            model = self.model
            label_h = 24
            plot_x, plot_y = self.x + 36, self.y + label_h
            plot_w, plot_h = self.width - 44, self.height - label_h - 8
            if plot_w <= 0 or plot_h <= 0:
                return

            d0, d1 = model.layout.domain
            span = (d1 - d0).total_seconds() or 1.0

            def to_x(moment: datetime) -> float:
                return plot_x + (moment - d0).total_seconds() / span * plot_w

            def to_y(minutes: float) -> float:
                return plot_y + minutes / model.scale.max_y * plot_h

            step = model.scale.grid_step
            ticks: list[float] = []
            value = 0.0
            while step > 0 and value <= model.scale.max_y:
                ticks.append(value)
                value += step

            with self.canvas:
                Color(0.8, 0.8, 0.8, 1)
                for tick in ticks:
                    y = to_y(tick)
                    Line(points=[plot_x, y, plot_x + plot_w, y], width=1)
                for bar in model.bars:
                    x = to_x(bar.position) - bar.width / 2
                    y0, y1 = to_y(0.0), to_y(bar.base_height)
                    y2 = to_y(bar.base_height + bar.extra_height)
                    Color(*BASE_COLOR)
                    Rectangle(pos=(x, y0), size=(bar.width, y1 - y0))
                    Color(*EXTRA_COLORS[bar.series_kind])
                    Rectangle(pos=(x, y1), size=(bar.width, y2 - y1))

            for tick in ticks:
                self.add_widget(
                    Label(
                        text=str(int(tick)),
                        pos=(self.x, to_y(tick) - 10),
                        size=(32, 20),
                        font_size="11sp",
                    )
                )
            for position, text in model.layout.labels:
                self.add_widget(
                    Label(
                        text=text,
                        pos=(to_x(position) - 30, self.y),
                        size=(60, label_h),
                        font_size="12sp",
                    )
                )

    class ActivityChartApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.sessions = list(sessions)
            self.chart: ChartWidget | None = None
            self.status: Label | None = None

        def build(self) -> BoxLayout:
            root = BoxLayout(orientation="vertical", spacing=8, padding=10)

            picker = BoxLayout(
                orientation="horizontal", spacing=4, size_hint_y=None, height=40
            )
            for period, title in PERIOD_TITLES.items():
                btn = ToggleButton(
                    text=title,
                    group="period",
                    state="down" if period is Period.DAY else "normal",
                    allow_no_selection=False,
                )
                btn.bind(on_press=lambda _btn, p=period: self._select(p))
                picker.add_widget(btn)
            root.add_widget(picker)

            self.status = Label(text="", size_hint_y=None, height=30)
            root.add_widget(self.status)

            self.chart = ChartWidget()
            root.add_widget(self.chart)

            self._select(Period.DAY)
            return root

        def _select(self, period: Period) -> None:
            try:
                model = build_render_model(self.sessions, period, config=chart_config)
            except Exception as exc:
                if self.status is not None:
                    self.status.text = f"Error ({type(exc).__name__}): {exc}"
                traceback.print_exc()
                return
            if self.status is not None:
                self.status.text = (
                    f"Total sitting: {model.total_sitting_minutes:g} min   "
                    f"Total exercising: {model.total_exercising_minutes:g} min"
                )
            if self.chart is not None:
                self.chart.show(model)

    ActivityChartApp().run()
    return 0


def load_sessions_file(path: Path) -> list[Session]:
    """Read sessions for the viewer (JSON or CSV by extension)."""
    source = source_for(path)
    source.validate()
    return source.load_sessions()
