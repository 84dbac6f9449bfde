"""Push-to-talk wake engine on a global hotkey, based on pynput.

Used in place of Porcupine when no Picovoice access key is configured. A
press of the hotkey is reported as keyword index 0.
"""

from __future__ import annotations

import threading
from typing import Optional

from errors import EngineConstructionError, EngineStartError
from interfaces import WakeCallback

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class HotkeyWakeWordEngine:
    def __init__(self, on_detect: WakeCallback, hotkey_name: str = "Key.alt_l") -> None:
        if keyboard is None:
            raise EngineConstructionError("pynput is not installed")
        self._on_detect = on_detect
        self._hotkey_name = hotkey_name
        self._listener: Optional[object] = None
        self._armed = False
        self._disposed = False
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._disposed:
                raise EngineStartError("hotkey engine is disposed")
            if self._listener is not None:
                self._armed = True
                return
            try:
                listener = keyboard.Listener(on_press=self._on_press)
                listener.start()
            except Exception as exc:
                raise EngineStartError(f"keyboard listener failed: {exc}") from exc
            self._listener = listener
            self._armed = True

    def stop(self) -> None:
        with self._lock:
            self._armed = False
            listener = self._listener
            self._listener = None
        if listener is not None:
            listener.stop()

    def dispose(self) -> None:
        self.stop()
        self._disposed = True

    def _on_press(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if not self._armed:
                return
            self._armed = False
        self._on_detect(0)
