"""Microphone recorder adapter."""

from __future__ import annotations

import functools
import logging
import threading
import time
from queue import Empty, Full, Queue
from typing import Any, Optional

from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class _Capture:
    """State of one start/stop cycle; callbacks from an old stream only see their own."""

    def __init__(self, audio_queue: Queue[AudioFrame | None]) -> None:
        self.audio_queue = audio_queue
        self.active = True
        self.pending = np.zeros(0, dtype=np.int16)


class SoundDeviceRecorder:
    """Delivers int16 PCM in frames of exactly ``frame_length`` samples.

    The host picks its own block size and the samples are repacked, so the
    wake-word engine always gets whole Porcupine frames. ``stop()`` always
    ends the run with a ``None`` sentinel, evicting a frame if the queue is full.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        frame_length: Optional[int] = None,
        channels: int = 1,
    ) -> None:
        self.sample_rate = sample_rate
        self.frame_length = frame_length or sample_rate // 10
        self.channels = channels
        self._stream: Any = None
        self._capture: Optional[_Capture] = None
        self._lock = threading.Lock()

    def start(self, audio_queue: Queue[AudioFrame | None]) -> None:
        with self._lock:
            if self._capture is not None:
                return
            if sd is None or np is None:
                raise RuntimeError("sounddevice is not installed")
            capture = _Capture(audio_queue)
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=0,
                callback=functools.partial(self._on_audio, capture),
            )
            stream.start()
            self._stream = stream
            self._capture = capture

    def stop(self) -> None:
        with self._lock:
            capture, self._capture = self._capture, None
            stream, self._stream = self._stream, None
            if capture is None:
                return
            capture.active = False
            try:
                if stream is not None:
                    stream.stop()
                    stream.close()
            finally:
                _end_run(capture.audio_queue)

    def _on_audio(self, capture: _Capture, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not capture.active:
            return
        if status:
            logger.debug("Input stream status: %s", status)
        samples = np.concatenate((capture.pending, np.asarray(indata, dtype=np.int16).reshape(-1)))
        step = self.frame_length * self.channels
        whole = len(samples) - len(samples) % step
        for offset in range(0, whole, step):
            frame = AudioFrame(
                pcm16_bytes=samples[offset:offset + step].tobytes(),
                sample_rate=self.sample_rate,
                channels=self.channels,
                timestamp_ms=int(time.time() * 1000),
            )
            try:
                capture.audio_queue.put_nowait(frame)
            except Full:
                logger.debug("Audio consumer is behind, dropping a frame")
        capture.pending = samples[whole:]


def _end_run(audio_queue: Queue[AudioFrame | None]) -> None:
    while True:
        try:
            audio_queue.put_nowait(None)
            return
        except Full:
            try:
                audio_queue.get_nowait()
            except Empty:
                pass
