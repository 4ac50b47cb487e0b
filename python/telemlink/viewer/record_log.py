"""Record log: scrolling table of received lines with Head/Tail modes."""

from __future__ import annotations

from collections import deque

import dearpygui.dearpygui as dpg

from telemlink.decoder import (
    ClassifiedRecord,
    FallbackReading,
    Informational,
    StructuredReading,
)

# Max DPG table rows displayed at once.  Oldest rows are deleted incrementally.
_MAX_DISPLAY_ROWS = 1_000

_INFO_COLOR = (150, 150, 150)
_ERROR_COLOR = (230, 90, 90)


def _row_cells(record: ClassifiedRecord) -> tuple[str, str, str]:
    """Return (time, kind, text) cells for one record."""
    if isinstance(record, StructuredReading):
        values = "  ".join(f"{tag}={value}"
                           for tag, value in record.fields.items())
        return str(record.timestamp), "reading", values
    if isinstance(record, FallbackReading):
        return str(record.timestamp), "raw", record.raw_remainder
    return "", "info", record.text


class RecordLog:
    """Single record table inside a window.

    Tail mode auto-scrolls to the latest record, Head stays at the top.
    Session status and errors are shown inline as coloured rows.
    """

    def __init__(self, window_tag: str) -> None:
        self._window_tag = window_tag
        self._table: int | str | None = None
        self._table_parent: int | str | None = None
        self._row_ids: deque[int] = deque()  # DPG row item IDs
        self._follow: bool = True  # Tail mode by default
        self._needs_scroll: bool = False
        self._head_btn: int | str | None = None
        self._tail_btn: int | str | None = None

        self._build_ui()

    def _build_ui(self) -> None:
        toolbar = dpg.add_group(parent=self._window_tag, horizontal=True)
        self._head_btn = dpg.add_button(
            label="Head", parent=toolbar,
            callback=lambda: self._set_follow(False))
        self._tail_btn = dpg.add_button(
            label="Tail", parent=toolbar,
            callback=lambda: self._set_follow(True))
        dpg.add_button(label="Clear", parent=toolbar,
                       callback=lambda: self.clear())
        self._update_follow_buttons()

        # Scrollable area for the table (this is what Head/Tail scroll)
        self._table_parent = dpg.add_child_window(
            parent=self._window_tag, height=-1, border=False)

        self._create_table()

    def _set_follow(self, follow: bool) -> None:
        self._follow = follow
        self._update_follow_buttons()
        if follow:
            self._needs_scroll = True
        elif self._table_parent is not None:
            dpg.set_y_scroll(self._table_parent, 0.0)

    def _update_follow_buttons(self) -> None:
        if self._head_btn is not None:
            dpg.configure_item(self._head_btn, enabled=self._follow)
        if self._tail_btn is not None:
            dpg.configure_item(self._tail_btn, enabled=not self._follow)

    def _create_table(self) -> None:
        if self._table is not None and dpg.does_item_exist(self._table):
            dpg.delete_item(self._table)

        self._row_ids.clear()
        self._table = dpg.add_table(
            parent=self._table_parent,
            header_row=True,
            resizable=True,
            policy=dpg.mvTable_SizingStretchProp,
        )
        dpg.add_table_column(label="Time", parent=self._table,
                             init_width_or_weight=0.20)
        dpg.add_table_column(label="Kind", parent=self._table,
                             init_width_or_weight=0.10)
        dpg.add_table_column(label="Line", parent=self._table,
                             init_width_or_weight=0.70)

    def append_records(self, records: list[ClassifiedRecord]) -> None:
        for record in records:
            time_text, kind, text = _row_cells(record)
            color = _INFO_COLOR if isinstance(record, Informational) else None
            self._add_row(time_text, kind, text, color)
        self._trim()

    def append_status(self, kind: str, message: str,
                      error: bool = False) -> None:
        self._add_row("", kind, message, _ERROR_COLOR if error else _INFO_COLOR)
        self._trim()

    def _add_row(self, time_text: str, kind: str, text: str,
                 color: tuple[int, int, int] | None) -> None:
        if self._table is None:
            return
        row = dpg.add_table_row(parent=self._table)
        dpg.add_text(time_text, parent=row)
        dpg.add_text(kind, parent=row)
        if color is None:
            dpg.add_text(text, parent=row)
        else:
            dpg.add_text(text, parent=row, color=color)
        self._row_ids.append(row)
        if self._follow:
            # Content height is not recalculated until the next frame
            self._needs_scroll = True

    def _trim(self) -> None:
        while len(self._row_ids) > _MAX_DISPLAY_ROWS:
            old_row = self._row_ids.popleft()
            if dpg.does_item_exist(old_row):
                dpg.delete_item(old_row)

    def tick(self) -> None:
        """Called once per frame. Performs deferred scroll-to-bottom."""
        if self._needs_scroll and self._follow and self._table_parent is not None:
            dpg.set_y_scroll(self._table_parent,
                             dpg.get_y_scroll_max(self._table_parent))
            self._needs_scroll = False

    def clear(self) -> None:
        self._create_table()
