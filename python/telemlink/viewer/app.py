"""DearPyGui application shell: connection panel, plots, record log, main loop."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import dearpygui.dearpygui as dpg

from telemlink.background import BackgroundSession
from telemlink.history import ReadingHistory
from telemlink.session import EventKind, SessionEvent
from telemlink.transport import endpoint_url

from .plots import SensorPlotPanel
from .record_log import RecordLog

logger = logging.getLogger(__name__)

_STATUS_COLORS = {
    "connected": (85, 168, 104),
    "disconnected": (221, 132, 82),
    "error": (196, 78, 82),
    "idle": (150, 150, 150),
}


class ViewerApp:
    """Top-level viewer application."""

    def __init__(self, host: str = "localhost", secure: bool = False) -> None:
        self._host = host
        self._secure = secure
        self._session: BackgroundSession | None = None
        self._history = ReadingHistory()
        self._plots: SensorPlotPanel | None = None
        self._log: RecordLog | None = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def setup(self) -> None:
        logging.basicConfig(level=logging.INFO,
                            format="%(name)s: %(message)s")

        dpg.create_context()

        dpg.configure_app(docking=True, docking_space=True,
                          init_file=self._get_ini_path(),
                          auto_save_init_file=True)

        dpg.create_viewport(title="telemlink viewer", width=1280, height=720)

        self._build_layout()
        self._session = BackgroundSession(self._host, self._secure)

        dpg.setup_dearpygui()
        dpg.show_viewport()

    @staticmethod
    def _get_ini_path() -> str:
        config_dir = Path.home() / ".config" / "telemlink"
        config_dir.mkdir(parents=True, exist_ok=True)
        return str(config_dir / "layout.ini")

    def _build_layout(self) -> None:
        with dpg.viewport_menu_bar():
            with dpg.menu(label="File"):
                dpg.add_menu_item(label="Quit",
                                  callback=lambda: dpg.stop_dearpygui())
            with dpg.menu(label="View"):
                dpg.add_menu_item(label="Clear Data",
                                  callback=self._on_clear)
                dpg.add_separator()
                dpg.add_menu_item(label="Reset Layout",
                                  callback=self._on_reset_layout)

        with dpg.window(label="Connection", tag="connection_window",
                        no_close=True, width=300, height=690, pos=[0, 25]):
            dpg.add_input_text(label="Host", tag="host_input",
                               default_value=self._host, width=180)
            dpg.add_checkbox(label="Secure (wss)", tag="secure_input",
                             default_value=self._secure)
            dpg.add_text("", tag="endpoint_text", color=(150, 150, 150))
            with dpg.group(horizontal=True):
                dpg.add_button(label="Connect", tag="connect_btn",
                               callback=lambda: self.connect())
                dpg.add_button(label="Disconnect", tag="disconnect_btn",
                               enabled=False,
                               callback=lambda: self.disconnect())
            dpg.add_separator()
            dpg.add_text("Not connected", tag="status_text",
                         color=_STATUS_COLORS["idle"])
            dpg.add_text("", tag="latest_text")

        with dpg.window(label="Plots", tag="plot_window", no_close=True,
                        width=620, height=690, pos=[305, 25]):
            pass

        with dpg.window(label="Log", tag="log_window", no_close=True,
                        width=350, height=690, pos=[930, 25]):
            pass

        self._plots = SensorPlotPanel("plot_window")
        self._log = RecordLog("log_window")

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def connect(self) -> None:
        assert self._session is not None
        host = dpg.get_value("host_input").strip() or "localhost"
        secure = bool(dpg.get_value("secure_input"))
        self._session.set_endpoint(host, secure)
        self._session.start()
        self._set_status("idle", "Connecting...")
        dpg.set_value("endpoint_text", endpoint_url(host, secure))

    def disconnect(self) -> None:
        assert self._session is not None
        self._session.stop()

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def _handle_events(self, events: list[SessionEvent]) -> bool:
        """Apply session events to the UI.  Return True if records arrived."""
        assert self._log is not None
        records = []
        got_records = False
        for ev in events:
            if ev.kind is EventKind.RECORD:
                records.append(ev.record)
                continue

            # Keep record order relative to status rows
            if records:
                self._log.append_records(records)
                self._history.extend(records)
                records = []
                got_records = True

            if ev.kind is EventKind.CONNECTED:
                self._set_status("connected", ev.message)
                dpg.configure_item("disconnect_btn", enabled=True)
            elif ev.kind is EventKind.DISCONNECTED:
                self._set_status("disconnected", ev.message)
                dpg.configure_item("disconnect_btn", enabled=False)
            elif ev.kind is EventKind.ERRORED:
                self._set_status("error", ev.message)
                self._log.append_status("error", ev.message, error=True)

        if records:
            self._log.append_records(records)
            self._history.extend(records)
            got_records = True
        return got_records

    def _set_status(self, kind: str, text: str) -> None:
        if dpg.does_item_exist("status_text"):
            dpg.set_value("status_text", text)
            dpg.configure_item("status_text",
                               color=_STATUS_COLORS.get(kind, (255, 255, 255)))

    def _update_latest(self) -> None:
        latest = self._history.latest()
        if latest is None or not dpg.does_item_exist("latest_text"):
            return
        lines = [f"{name:>6s}: {value:g}" for name, value in latest.items()]
        lines.append(f"samples: {self._history.total_samples:,}")
        dpg.set_value("latest_text", "\n".join(lines))

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_clear(self) -> None:
        self._history.clear()
        if self._plots is not None:
            self._plots.clear()
        if self._log is not None:
            self._log.clear()
        dpg.set_value("latest_text", "")

    def _on_reset_layout(self) -> None:
        try:
            os.remove(self._get_ini_path())
        except FileNotFoundError:
            pass
        self._set_status("idle", "Layout reset. Restart to apply.")

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        while dpg.is_dearpygui_running():
            # 1. Drain session events
            if self._session is not None:
                new_data = self._handle_events(self._session.poll())
                if new_data and self._plots is not None:
                    self._plots.push_data(self._history)
                    self._update_latest()

            # 2. Per-frame tick (deferred fit, log scrolling)
            if self._plots is not None:
                self._plots.tick()
            if self._log is not None:
                self._log.tick()

            dpg.render_dearpygui_frame()

        self._cleanup()

    def _cleanup(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        dpg.destroy_context()
