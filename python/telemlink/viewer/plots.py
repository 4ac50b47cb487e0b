"""Sensor plots: one line series per field, fed from a ReadingHistory."""

from __future__ import annotations

import numpy as np
import dearpygui.dearpygui as dpg

from telemlink.decoder import FIELD_TAGS
from telemlink.history import ReadingHistory

# ImPlot "Deep" colormap
_PALETTE = [
    (76, 114, 176, 255),
    (221, 132, 82, 255),
    (85, 168, 104, 255),
    (196, 78, 82, 255),
    (129, 114, 179, 255),
]

# Plots grouped by unit: pressure and depth/altitude get their own axes
_GROUPS = [
    ("Pressure", ["p"]),
    ("Temperature", ["t1", "t2"]),
    ("Depth / Altitude", ["depth", "alt"]),
]


class SensorPlotPanel:
    """Stacked plots of the five sensor fields against sample number."""

    def __init__(self, parent: int | str) -> None:
        self._parent = parent
        self._labels = dict(FIELD_TAGS)
        self._lines: dict[str, int | str] = {}
        self._axes: list[tuple[int | str, int | str]] = []
        self._follow = True
        self._dirty = False
        self._build()

    def _build(self) -> None:
        dpg.add_checkbox(label="Follow", parent=self._parent,
                         default_value=True,
                         callback=lambda s, a: self._set_follow(a))
        color_index = 0
        for title, names in _GROUPS:
            plot = dpg.add_plot(label=title, parent=self._parent,
                                height=200, width=-1, anti_aliased=True)
            dpg.add_plot_legend(parent=plot)
            x_axis = dpg.add_plot_axis(dpg.mvXAxis, label="Sample",
                                       parent=plot)
            y_axis = dpg.add_plot_axis(dpg.mvYAxis, label=title, parent=plot)
            self._axes.append((x_axis, y_axis))
            for name in names:
                line = dpg.add_line_series([], [], label=self._labels[name],
                                           parent=y_axis)
                with dpg.theme() as theme:
                    with dpg.theme_component(dpg.mvLineSeries):
                        dpg.add_theme_color(
                            dpg.mvPlotCol_Line,
                            _PALETTE[color_index % len(_PALETTE)],
                            category=dpg.mvThemeCat_Plots)
                dpg.bind_item_theme(line, theme)
                self._lines[name] = line
                color_index += 1

    def _set_follow(self, follow: bool) -> None:
        self._follow = bool(follow)

    def push_data(self, history: ReadingHistory) -> None:
        for name, line in self._lines.items():
            x, y = history.series(name)
            dpg.configure_item(line, x=x.astype(np.float64).tolist(),
                               y=y.tolist())
        self._dirty = len(history) > 0

    def tick(self) -> None:
        """Per-frame: refit axes to the data while following."""
        if not (self._follow and self._dirty):
            return
        for x_axis, y_axis in self._axes:
            dpg.fit_axis_data(x_axis)
            dpg.fit_axis_data(y_axis)
        self._dirty = False

    def clear(self) -> None:
        for line in self._lines.values():
            dpg.configure_item(line, x=[], y=[])
