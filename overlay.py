"""Overlay window rendering the assistant status stream."""

from __future__ import annotations

from models import ListeningState, StatusUpdate

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

IDLE_BACKGROUND = "rgba(13,71,161,210)"      # blue
LISTENING_BACKGROUND = "rgba(183,28,28,210)"  # red
ERROR_BACKGROUND = "rgba(0,0,0,210)"

ICON_IDLE = "\U0001F3A4"       # microphone
ICON_LISTENING = "\U0001F442"  # ear


def _panel_style(background: str) -> str:
    return f"background: {background}; border-radius: 12px;"


def icon_for(state: ListeningState) -> str:
    return ICON_LISTENING if state == ListeningState.TRANSCRIBING else ICON_IDLE


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(600)

        self._panel = QWidget()
        self._icon = QLabel(ICON_IDLE)
        self._icon.setAlignment(Qt.AlignCenter)
        self._icon.setStyleSheet("font-size: 40px; padding-top: 12px;")
        self._status = QLabel("")
        self._status.setAlignment(Qt.AlignCenter)
        self._status.setStyleSheet("color: rgba(255,255,255,180); font-size: 14px;")
        self._transcript = QLabel("")
        self._transcript.setAlignment(Qt.AlignCenter)
        self._transcript.setWordWrap(True)
        self._transcript.setStyleSheet(
            "color: white; font-size: 22px; font-weight: bold; padding: 12px 16px 16px 16px;"
        )

        inner = QVBoxLayout()
        inner.addWidget(self._icon)
        inner.addWidget(self._status)
        inner.addWidget(self._transcript)
        self._panel.setLayout(inner)
        self._panel.setStyleSheet(_panel_style(IDLE_BACKGROUND))

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._panel)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _center_top(self) -> None:
        """Position the window at the top center of the primary screen."""
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

    def render_status(self, status: StatusUpdate) -> None:
        """Show the latest status; the overlay stays visible while listening."""
        self._cancel_hide_timer()
        listening = status.state == ListeningState.TRANSCRIBING
        self._panel.setStyleSheet(_panel_style(LISTENING_BACKGROUND if listening else IDLE_BACKGROUND))
        self._icon.setText(icon_for(status.state))
        self._status.setText(status.status_text)
        self._transcript.setText(status.display_text)
        self._center_top()
        self.show()
        if status.state == ListeningState.AWAITING_WAKE_WORD:
            self.hide_with_delay(1500)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        """Hide the overlay window after a short delay."""
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def show_error(self, text: str, hide_after_ms: int = 2000) -> None:
        """Show an error message and auto-hide after given ms."""
        self._cancel_hide_timer()
        self._panel.setStyleSheet(_panel_style(ERROR_BACKGROUND))
        self._transcript.setText(f"⚠️ {text}")
        self._center_top()
        self.show()
        self.hide_with_delay(hide_after_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
