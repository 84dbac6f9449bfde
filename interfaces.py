"""Protocol interfaces used by ListeningStateMachine and CommandDispatcher."""

from __future__ import annotations

from pathlib import Path
from queue import Queue
from typing import Callable, Protocol, Sequence

from models import AudioFrame, ContactEntry

WakeCallback = Callable[[int], None]
PayloadCallback = Callable[[str], None]


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None]) -> None: ...

    def stop(self) -> None: ...


class WakeWordEngine(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def dispose(self) -> None: ...


class SpeechSession(Protocol):
    def on_partial(self, callback: PayloadCallback) -> None: ...

    def on_result(self, callback: PayloadCallback) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def dispose(self) -> None: ...


class TranscriptionEngine(Protocol):
    def reset(self) -> None: ...

    def create_session(self) -> SpeechSession: ...

    def dispose(self) -> None: ...


class ContactDirectory(Protocol):
    def load_all(self) -> Sequence[ContactEntry]: ...


class ActionExecutor(Protocol):
    def dial(self, digits: str) -> bool: ...

    def browse(self, url: str) -> bool: ...

    def launch_app(self, app_id: str) -> bool: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...



class ConfigStore(Protocol):
    def get_access_key(self) -> str: ...

    def set_access_key(self, key: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_keyword_path(self) -> str: ...

    def get_sensitivity(self) -> float: ...

    def get_model_path(self) -> str: ...

    def get_contacts_path(self) -> Path: ...

    def get_match_max_distance(self) -> int: ...

    def get_dial_digits_threshold(self) -> int: ...

    def get_backoff_s(self) -> float: ...

    def get_settle_s(self) -> float: ...

    def get_listen_timeout_s(self) -> float: ...
