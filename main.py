"""Application entrypoint."""

from __future__ import annotations

import os
import sys

import structlog

from capture_sink import SegmentCaptureSink
from config import JsonConfigStore
from devices import choose_device, list_input_devices
from hotkey import GlobalHotkeyAdapter
from logging_setup import setup_logging
from media import SoundDeviceMediaAcquirer
from models import CaptureOutput, Orientation, RecordingState
from overlay import StatusOverlay
from session_controller import SessionController

try:
    from PySide6.QtCore import QObject, QSize, QTimer, Signal
    from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = structlog.get_logger()

FRAME_INTERVAL_MS = 16


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


STATE_ICONS = {
    RecordingState.IDLE: "#888888",
    RecordingState.CALIBRATING: "#EAB308",
    RecordingState.RECORDING: "#FF4444",
    RecordingState.PAUSED: "#4B5563",
    RecordingState.STOPPED: "#16A34A",
}


class UIBridge(QObject):
    state_signal = Signal(str, str)  # from_state, to_state
    countdown_signal = Signal(int)
    error_signal = Signal(str)
    toggle_signal = Signal()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.overlay = StatusOverlay()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.countdown_signal.connect(self.overlay.set_countdown)
        self.ui.error_signal.connect(self.overlay.show_error)
        self.ui.toggle_signal.connect(self._toggle_recording)

        settings = self.config_store.get_settings()
        self.controller = SessionController(
            acquirer=SoundDeviceMediaAcquirer(fft_size=settings.fft_size),
            sink=SegmentCaptureSink(),
            settings=settings,
            on_state_change=self._on_state_change,
            on_countdown=self.ui.countdown_signal.emit,
            on_error=self._on_error,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.frame_timer = QTimer()
        self.frame_timer.setInterval(FRAME_INTERVAL_MS)
        self.frame_timer.timeout.connect(self.controller.step)

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(STATE_ICONS[RecordingState.IDLE]))
        self.tray.setToolTip("Jump Cut — Ready")
        self._setup_menu()
        self._sync_actions(RecordingState.IDLE)
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        self.start_action = QAction("Start Recording", menu)
        self.start_action.triggered.connect(self._start_recording)
        menu.addAction(self.start_action)

        self.stop_action = QAction("Stop Recording", menu)
        self.stop_action.triggered.connect(self.controller.stop_session)
        menu.addAction(self.stop_action)

        self.reset_action = QAction("Record Again", menu)
        self.reset_action.triggered.connect(self.controller.reset_session)
        menu.addAction(self.reset_action)

        menu.addSeparator()
        self.orientation_menu = menu.addMenu("Orientation")
        group = QActionGroup(self.orientation_menu)
        group.setExclusive(True)
        current = self.config_store.get_orientation()
        for orientation in Orientation:
            action = QAction(orientation.value.capitalize(), self.orientation_menu)
            action.setCheckable(True)
            action.setChecked(orientation == current)
            action.triggered.connect(
                lambda _checked=False, o=orientation: self.config_store.set_orientation(o)
            )
            group.addAction(action)
            self.orientation_menu.addAction(action)

        self.device_menu = menu.addMenu("Microphone")
        self.device_menu.aboutToShow.connect(self._populate_devices)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _populate_devices(self) -> None:
        self.device_menu.clear()
        devices = list_input_devices()
        if not devices:
            empty = QAction("No microphones found", self.device_menu)
            empty.setEnabled(False)
            self.device_menu.addAction(empty)
            return
        selected = choose_device(devices, self.config_store.get_device_id())
        group = QActionGroup(self.device_menu)
        group.setExclusive(True)
        for device in devices:
            action = QAction(device.label, self.device_menu)
            action.setCheckable(True)
            action.setChecked(device.device_id == selected)
            action.triggered.connect(
                lambda _checked=False, d=device.device_id: self.config_store.set_device_id(d)
            )
            group.addAction(action)
            self.device_menu.addAction(action)

    def _start_recording(self) -> None:
        devices = list_input_devices()
        device_id = choose_device(devices, self.config_store.get_device_id())
        self.controller.start_session(
            device_id=device_id,
            orientation=self.config_store.get_orientation(),
        )

    def _toggle_recording(self) -> None:
        state = self.controller.state
        if state == RecordingState.STOPPED:
            self.controller.reset_session()
            state = self.controller.state
        if state == RecordingState.IDLE:
            self._start_recording()
        else:
            self.controller.stop_session()

    # ------------------------------------------------------------------
    # Controller callbacks (may run on the hotkey thread → emit signals)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: RecordingState, to_state: RecordingState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_error(self, code: str, message: str) -> None:
        logger.error("session_error", code=code, message=message)
        self.ui.error_signal.emit(message)

    # ------------------------------------------------------------------
    # UI thread handlers
    # ------------------------------------------------------------------

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        state = RecordingState(to_state)
        self.tray.setIcon(_create_icon(STATE_ICONS[state]))
        self.tray.setToolTip(f"Jump Cut — {state.value.capitalize()}")
        self.overlay.set_state(state)
        self._sync_actions(state)

        if state in (RecordingState.CALIBRATING, RecordingState.RECORDING, RecordingState.PAUSED):
            if not self.frame_timer.isActive():
                self.frame_timer.start()
        else:
            self.frame_timer.stop()

        if state == RecordingState.STOPPED:
            self._report_output(self.controller.output)

    def _sync_actions(self, state: RecordingState) -> None:
        self.start_action.setEnabled(state == RecordingState.IDLE)
        self.stop_action.setEnabled(
            state in (RecordingState.CALIBRATING, RecordingState.RECORDING, RecordingState.PAUSED)
        )
        self.reset_action.setEnabled(state == RecordingState.STOPPED)
        self.orientation_menu.setEnabled(state == RecordingState.IDLE)
        self.device_menu.setEnabled(state == RecordingState.IDLE)

    def _report_output(self, output: object) -> None:
        if not isinstance(output, CaptureOutput):
            return
        self.tray.showMessage(
            "Recording finished",
            f"Kept {output.duration_ms / 1000:.1f}s in {len(output.segments)} segment(s).",
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(on_toggle=self.ui.toggle_signal.emit)
        except Exception as exc:
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.frame_timer.stop()
        self.controller.stop_session()
        self.controller.reset_session()
        self.app.quit()


def main() -> int:
    setup_logging(
        mode=os.environ.get("JUMPCUT_LOG_MODE", "production"),
        log_file=os.environ.get("JUMPCUT_LOG_FILE"),
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
