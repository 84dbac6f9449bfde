"""Wake word detection with Porcupine (Picovoice)."""

from __future__ import annotations

import logging
import struct
import threading
from queue import Empty, Queue
from typing import Callable, Optional, Sequence

from errors import EngineConstructionError, EngineStartError
from interfaces import Recorder, WakeCallback
from models import AudioFrame
from recorder import SoundDeviceRecorder

try:
    import pvporcupine
except Exception:  # pragma: no cover
    pvporcupine = None  # type: ignore

logger = logging.getLogger(__name__)


class PorcupineWakeWordEngine:
    """Runs Porcupine over microphone frames and reports the keyword index.

    The callback fires on the engine's worker thread. Capture is disarmed
    after a detection until the next ``start()``.
    """

    def __init__(
        self,
        access_key: str,
        keyword_paths: Sequence[str],
        on_detect: WakeCallback,
        sensitivities: Optional[Sequence[float]] = None,
        recorder_factory: Optional[Callable[[int, int], Recorder]] = None,
    ) -> None:
        if pvporcupine is None:
            raise EngineConstructionError("pvporcupine is not installed")
        if not keyword_paths:
            raise EngineConstructionError("no wake word keyword asset configured")
        sensitivities = list(sensitivities) if sensitivities is not None else [0.5] * len(keyword_paths)
        if len(sensitivities) != len(keyword_paths):
            raise EngineConstructionError("one sensitivity is required per keyword")
        for value in sensitivities:
            if not 0.0 <= value <= 1.0:
                raise EngineConstructionError(f"sensitivity {value} is outside [0, 1]")

        try:
            self._porcupine = pvporcupine.create(
                access_key=access_key,
                keyword_paths=list(keyword_paths),
                sensitivities=sensitivities,
            )
        except Exception as exc:
            raise EngineConstructionError(f"could not create Porcupine: {exc}") from exc

        self._on_detect = on_detect
        factory = recorder_factory or (
            lambda rate, length: SoundDeviceRecorder(sample_rate=rate, frame_length=length)
        )
        self._recorder = factory(self._porcupine.sample_rate, self._porcupine.frame_length)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._audio_queue: Optional[Queue[AudioFrame | None]] = None
        self._lock = threading.Lock()
        logger.info("Porcupine ready with %d keyword(s)", len(keyword_paths))

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        with self._lock:
            if self._porcupine is None:
                raise EngineStartError("wake word engine is disposed")
            if self.running:
                return
            # Fresh queue and event per run so a lingering worker cannot consume the next run's audio.
            self._stop_event = threading.Event()
            self._audio_queue = Queue(maxsize=50)
            try:
                self._recorder.start(self._audio_queue)
            except Exception as exc:
                raise EngineStartError(f"microphone start failed: {exc}") from exc
            self._thread = threading.Thread(
                target=self._worker,
                args=(self._audio_queue, self._stop_event),
                name="porcupine",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            self._stop_event.set()
            try:
                self._recorder.stop()
            finally:
                thread = self._thread
                if thread and thread.is_alive() and thread is not threading.current_thread():
                    thread.join(timeout=0.5)

    def dispose(self) -> None:
        self.stop()
        with self._lock:
            porcupine = self._porcupine
            self._porcupine = None
        if porcupine is not None:
            porcupine.delete()

    def _worker(self, audio_queue: Queue[AudioFrame | None], stop_event: threading.Event) -> None:
        porcupine = self._porcupine
        if porcupine is None:
            return
        frame_length = porcupine.frame_length
        while not stop_event.is_set():
            try:
                frame = audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:  # Sentinel
                break
            if len(frame.pcm16_bytes) < frame_length * 2:
                continue
            pcm = struct.unpack_from("h" * frame_length, frame.pcm16_bytes)
            index = porcupine.process(pcm)
            if index >= 0 and not stop_event.is_set():
                stop_event.set()
                self._on_detect(index)
                return
