"""Overlay window showing the recorder state."""

from __future__ import annotations

from models import RecordingState

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_BASE_STYLE = "font-size: 18px; padding: 16px; border-radius: 12px;"

STATE_STYLES = {
    RecordingState.IDLE: "color: white; background: rgba(0,0,0,190);",
    RecordingState.CALIBRATING: "color: black; background: rgba(234,179,8,220);",
    RecordingState.RECORDING: "color: white; background: rgba(220,38,38,220);",
    RecordingState.PAUSED: "color: white; background: rgba(55,65,81,220);",
    RecordingState.STOPPED: "color: white; background: rgba(22,163,74,220);",
}

STATE_LABELS = {
    RecordingState.IDLE: "Ready",
    RecordingState.CALIBRATING: "Calibrating... stay quiet",
    RecordingState.RECORDING: "● REC",
    RecordingState.PAUSED: "❚❚ Paused (silence)",
    RecordingState.STOPPED: "Recording finished",
}


def format_countdown(remaining_ms: int) -> str:
    return f"Calibrating... {max(0, remaining_ms) / 1000:.1f}s"


class StatusOverlay(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(360)

        self._label = QLabel("")
        self._label.setAlignment(Qt.AlignCenter)
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._state = RecordingState.IDLE
        self._hide_timer: QTimer | None = None
        self._apply_style(self._state)

    def set_state(self, state: RecordingState) -> None:
        self._state = state
        self._apply_style(state)
        self._show_text(STATE_LABELS[state])
        if state in (RecordingState.IDLE, RecordingState.STOPPED):
            self.hide_with_delay(1500)

    def set_countdown(self, remaining_ms: int) -> None:
        if self._state != RecordingState.CALIBRATING:
            return
        self._show_text(format_countdown(remaining_ms))

    def show_error(self, text: str, hide_after_ms: int = 4000) -> None:
        self._label.setStyleSheet(_BASE_STYLE + "color: #FF6B6B; background: rgba(0,0,0,210);")
        self._show_text(text)
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _show_text(self, text: str) -> None:
        self._cancel_hide_timer()
        self._label.setText(text)
        self._center_top()
        self.show()

    def _center_top(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def _apply_style(self, state: RecordingState) -> None:
        self._label.setStyleSheet(_BASE_STYLE + STATE_STYLES[state])

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
