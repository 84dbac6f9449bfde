"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from actions import DesktopActionExecutor
from config import JsonConfigStore, load_env_file
from contacts import ContactResolver, JsonContactDirectory, load_directory
from dispatcher import CommandDispatcher
from errors import ERROR_MESSAGES, EngineConstructionError
from hotkey import HotkeyWakeWordEngine
from interfaces import ConfigStore, WakeCallback, WakeWordEngine
from interpreter import CommandInterpreter
from listening_machine import ListeningStateMachine
from models import ListeningState, StatusUpdate
from overlay import OverlayWindow
from recognizer import VoskTranscriptionEngine
from wake_word import PorcupineWakeWordEngine

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))  # transparent background
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_WAITING = "#1E88E5"    # blue
ICON_LISTENING = "#FF4444"  # red
ICON_ERROR = "#FF8800"      # orange

TRAY_TITLE = "Hey Adel"


class UIBridge(QObject):
    status_signal = Signal(object)  # StatusUpdate
    error_signal = Signal(str)


class App:
    def __init__(self, config_store: Optional[ConfigStore] = None) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store: ConfigStore = config_store or JsonConfigStore()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.status_signal.connect(self._on_status_ui)
        self.ui.error_signal.connect(self._on_error_ui)

        contacts = load_directory(JsonContactDirectory(self.config_store.get_contacts_path()))
        dispatcher = CommandDispatcher(
            executor=DesktopActionExecutor(),
            directory=contacts,
            resolver=ContactResolver(max_distance=self.config_store.get_match_max_distance()),
        )
        self.machine = ListeningStateMachine(
            wake_engine_factory=self._build_wake_engine,
            transcription_engine_factory=self._build_transcription_engine,
            dispatcher=dispatcher,
            interpreter=CommandInterpreter(
                dial_digits_threshold=self.config_store.get_dial_digits_threshold()
            ),
            backoff_s=self.config_store.get_backoff_s(),
            settle_s=self.config_store.get_settle_s(),
            listen_timeout_s=self.config_store.get_listen_timeout_s(),
            on_status=self._on_status,
            on_error=self._on_error,
        )

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_WAITING))
        self.tray.setToolTip(f"{TRAY_TITLE} — Initializing...")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        key_action = QAction("Set Picovoice Access Key", menu)
        key_action.triggered.connect(self._set_access_key)
        menu.addAction(key_action)

        hotkey_action = QAction("Set Push-to-talk Hotkey", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_access_key(self) -> None:
        value, ok = QInputDialog.getText(None, "Access Key", "Picovoice Access Key")
        if not ok:
            return
        self.config_store.set_access_key(value)
        QMessageBox.information(None, "Saved", "Access key saved. Restart app to apply.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.alt_l"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    # ------------------------------------------------------------------
    # Engine factories
    # ------------------------------------------------------------------

    def _build_wake_engine(self, on_detect: WakeCallback) -> WakeWordEngine:
        access_key = self.config_store.get_access_key()
        if not access_key:
            logger.info("No Picovoice access key, using push-to-talk hotkey")
            return HotkeyWakeWordEngine(on_detect, hotkey_name=self.config_store.get_hotkey())
        return PorcupineWakeWordEngine(
            access_key=access_key,
            keyword_paths=[self.config_store.get_keyword_path()],
            on_detect=on_detect,
            sensitivities=[self.config_store.get_sensitivity()],
        )

    def _build_transcription_engine(self) -> VoskTranscriptionEngine:
        return VoskTranscriptionEngine(model_path=self.config_store.get_model_path())

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_status(self, status: StatusUpdate) -> None:
        self.ui.status_signal.emit(status)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(f"{ERROR_MESSAGES.get(code, code)} ({message})")

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_status_ui(self, status: StatusUpdate) -> None:
        if status.state == ListeningState.TRANSCRIBING:
            self.tray.setIcon(_create_icon(ICON_LISTENING))
        elif status.state in (ListeningState.FATAL_ERROR, ListeningState.RECOVERING_WAKE_WORD):
            self.tray.setIcon(_create_icon(ICON_ERROR))
        else:
            self.tray.setIcon(_create_icon(ICON_WAITING))
        self.tray.setToolTip(f"{TRAY_TITLE} — {status.status_text}")
        self.overlay.render_status(status)

    def _on_error_ui(self, msg: str) -> None:
        logger.warning(msg)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.machine.start()
        except EngineConstructionError as exc:
            self.overlay.show_error(f"Fatal Error: {exc}", hide_after_ms=10000)
        return self.app.exec()

    def quit(self) -> None:
        self.machine.shutdown()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_env_file()
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
