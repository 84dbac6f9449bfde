"""Offline transcription engine backed by Vosk.

One ``KaldiRecognizer`` is built at startup and reused by every speech
session. A session pulls PCM frames from the microphone recorder on a worker
thread and publishes the recognizer's JSON payloads: ``{"partial": ...}``
while the utterance is in progress and ``{"text": ...}`` when it completes.
"""

from __future__ import annotations

import logging
import threading
from queue import Empty, Queue
from typing import Callable, List, Optional

from errors import EngineConstructionError, EngineStartError
from interfaces import PayloadCallback, Recorder
from models import AudioFrame
from recorder import SoundDeviceRecorder

try:
    import vosk
except Exception:  # pragma: no cover
    vosk = None  # type: ignore

logger = logging.getLogger(__name__)

RecorderFactory = Callable[[], Recorder]


class VoskSpeechSession:
    def __init__(self, recognizer: object, recorder: Recorder, queue_maxsize: int = 50) -> None:
        self._recognizer = recognizer
        self._recorder = recorder
        self._queue_maxsize = queue_maxsize
        self._partial_callbacks: List[PayloadCallback] = []
        self._result_callbacks: List[PayloadCallback] = []
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._audio_queue: Optional[Queue[AudioFrame | None]] = None
        self._disposed = False

    def on_partial(self, callback: PayloadCallback) -> None:
        self._partial_callbacks.append(callback)

    def on_result(self, callback: PayloadCallback) -> None:
        self._result_callbacks.append(callback)

    def start(self) -> None:
        if self._disposed:
            raise EngineStartError("speech session is disposed")
        if self._thread and self._thread.is_alive():
            return
        self._audio_queue = Queue(maxsize=self._queue_maxsize)
        self._stop_event = threading.Event()
        try:
            self._recorder.start(self._audio_queue)
        except Exception as exc:
            raise EngineStartError(f"microphone start failed: {exc}") from exc
        self._thread = threading.Thread(
            target=self._worker,
            args=(self._audio_queue, self._stop_event),
            name="vosk-session",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        try:
            self._recorder.stop()
        finally:
            thread = self._thread
            if thread and thread.is_alive() and thread is not threading.current_thread():
                thread.join(timeout=0.5)

    def dispose(self) -> None:
        if self._disposed:
            return
        self.stop()
        self._disposed = True
        self._partial_callbacks.clear()
        self._result_callbacks.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self, audio_queue: Queue[AudioFrame | None], stop_event: threading.Event) -> None:
        """Feed frames to the recognizer until the sentinel or stop."""
        last_partial = ""
        while not stop_event.is_set():
            try:
                frame = audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:  # Sentinel
                break
            if self._recognizer.AcceptWaveform(frame.pcm16_bytes):
                last_partial = ""
                self._publish(stop_event, self._result_callbacks, self._recognizer.Result())
                continue
            partial = self._recognizer.PartialResult()
            if partial != last_partial:
                last_partial = partial
                self._publish(stop_event, self._partial_callbacks, partial)

    def _publish(self, stop_event: threading.Event, callbacks: List[PayloadCallback], payload: str) -> None:
        if stop_event.is_set():
            return
        for callback in list(callbacks):
            callback(payload)


class VoskTranscriptionEngine:
    def __init__(
        self,
        model_path: str,
        sample_rate: int = 16000,
        recorder_factory: Optional[RecorderFactory] = None,
    ) -> None:
        if vosk is None:
            raise EngineConstructionError("vosk is not installed")
        self._sample_rate = sample_rate
        self._recorder_factory = recorder_factory or (lambda: SoundDeviceRecorder(sample_rate=sample_rate))
        try:
            vosk.SetLogLevel(-1)
            self._model = vosk.Model(model_path)
            self._recognizer = vosk.KaldiRecognizer(self._model, sample_rate)
        except Exception as exc:
            raise EngineConstructionError(f"could not load Vosk model from {model_path}: {exc}") from exc
        logger.info("Vosk model loaded from %s", model_path)

    def reset(self) -> None:
        """Drop any half-finished hypothesis left from the previous session."""
        if self._recognizer is not None:
            self._recognizer.Reset()

    def create_session(self) -> VoskSpeechSession:
        if self._recognizer is None:
            raise EngineStartError("transcription engine is disposed")
        try:
            recorder = self._recorder_factory()
        except Exception as exc:
            raise EngineStartError(f"could not open microphone: {exc}") from exc
        return VoskSpeechSession(self._recognizer, recorder)

    def dispose(self) -> None:
        self._recognizer = None
        self._model = None
