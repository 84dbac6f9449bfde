"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

from queue import Queue
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from models import AudioFrame
import recorder as recorder_module
from recorder import SoundDeviceRecorder


def _samples(start: int, stop: int) -> np.ndarray:
    return np.arange(start, stop, dtype=np.int16).reshape(-1, 1)


def _callback(mock_sd: MagicMock):  # noqa: ANN202
    return mock_sd.InputStream.call_args.kwargs["callback"]


@patch("recorder.sd")
def test_stream_lets_host_pick_block_size(mock_sd: MagicMock) -> None:
    rec = SoundDeviceRecorder(sample_rate=16000, frame_length=512)
    rec.start(Queue())

    kwargs = mock_sd.InputStream.call_args.kwargs
    assert kwargs["samplerate"] == 16000
    assert kwargs["dtype"] == "int16"
    assert kwargs["blocksize"] == 0
    rec.stop()


@patch("recorder.sd")
def test_samples_are_repacked_into_exact_frames(mock_sd: MagicMock) -> None:
    rec = SoundDeviceRecorder(sample_rate=16000, frame_length=512)
    q: Queue[AudioFrame | None] = Queue()
    rec.start(q)
    callback = _callback(mock_sd)

    callback(_samples(0, 700), 700, None, None)
    first = q.get_nowait()
    assert first.pcm16_bytes == np.arange(0, 512, dtype=np.int16).tobytes()
    assert q.empty()

    callback(_samples(700, 1000), 300, None, None)
    assert q.empty()

    callback(_samples(1000, 1024), 24, None, None)
    second = q.get_nowait()
    assert second.pcm16_bytes == np.arange(512, 1024, dtype=np.int16).tobytes()
    assert second.sample_rate == 16000
    rec.stop()


@patch("recorder.sd")
def test_default_frame_is_a_tenth_of_a_second(mock_sd: MagicMock) -> None:
    rec = SoundDeviceRecorder(sample_rate=16000)
    q: Queue[AudioFrame | None] = Queue()
    rec.start(q)

    _callback(mock_sd)(_samples(0, 1600), 1600, None, None)

    assert len(q.get_nowait().pcm16_bytes) == 1600 * 2
    rec.stop()


@patch("recorder.sd")
def test_start_twice_opens_one_stream(mock_sd: MagicMock) -> None:
    rec = SoundDeviceRecorder()
    q: Queue[AudioFrame | None] = Queue()
    rec.start(q)
    rec.start(q)

    assert mock_sd.InputStream.call_count == 1
    rec.stop()


@patch("recorder.sd")
def test_stop_sentinel_reaches_a_full_queue(mock_sd: MagicMock) -> None:
    stream = MagicMock()
    mock_sd.InputStream.return_value = stream
    rec = SoundDeviceRecorder(frame_length=512)
    q: Queue[AudioFrame | None] = Queue(maxsize=1)
    rec.start(q)
    _callback(mock_sd)(_samples(0, 1024), 1024, None, None)
    assert q.full()

    rec.stop()
    rec.stop()

    stream.stop.assert_called_once()
    stream.close.assert_called_once()
    assert q.get_nowait() is None
    assert q.empty()


@patch("recorder.sd")
def test_callback_from_previous_run_is_ignored(mock_sd: MagicMock) -> None:
    rec = SoundDeviceRecorder(frame_length=512)
    first: Queue[AudioFrame | None] = Queue()
    rec.start(first)
    old_callback = _callback(mock_sd)
    rec.stop()
    assert first.get_nowait() is None

    second: Queue[AudioFrame | None] = Queue()
    rec.start(second)
    old_callback(_samples(0, 512), 512, None, None)

    assert first.empty()
    assert second.empty()

    _callback(mock_sd)(_samples(0, 512), 512, None, None)
    assert isinstance(second.get_nowait(), AudioFrame)
    rec.stop()


def test_start_raises_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(recorder_module, "sd", None)

    with pytest.raises(RuntimeError, match="sounddevice is not installed"):
        SoundDeviceRecorder().start(Queue())
