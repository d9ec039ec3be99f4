"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from live_scribe.l1_entities.audio_constants import SAMPLE_RATE
from live_scribe.l1_entities.capture_window import CaptureBlob
from live_scribe.l1_entities.config import AppConfig
from live_scribe.l1_entities.errors import DecodeError
from live_scribe.l1_entities.sample_buffer import SampleBuffer
from live_scribe.l2_use_cases.ports.speech_pipeline import PipelineConfig
from live_scribe.l4_frameworks_and_drivers.infra_config import build_app_config

# --- Protocol-conforming Fakes ---


def tone(seconds: float, level: float = 0.1, sample_rate: int = SAMPLE_RATE) -> SampleBuffer:
    """Constant-level mono buffer; *level* doubles as a marker for FakeSpeechPipeline."""
    return SampleBuffer(np.full(int(seconds * sample_rate), level, dtype=np.float32), sample_rate)


class FakeSpeechPipeline:
    """Fake pipeline. *respond* maps the audio to text, or is a fixed string."""

    def __init__(self, respond: Callable[[np.ndarray], str] | str = '', error: Exception | None = None):
        self._respond = respond
        self._error = error
        self.transcribe_calls: list[np.ndarray] = []
        self.closed = False

    def transcribe(self, audio: np.ndarray) -> str:
        self.transcribe_calls.append(audio)
        if self._error is not None:
            raise self._error
        if callable(self._respond):
            return self._respond(audio)
        return self._respond

    def close(self) -> None:
        self.closed = True


class FakePipelineProvider:
    """Counts loads; fails the first *fail_times* calls."""

    def __init__(self, pipeline: FakeSpeechPipeline | None = None, fail_times: int = 0, load_delay: float = 0.0):
        self.pipeline = pipeline or FakeSpeechPipeline()
        self._fail_times = fail_times
        self._load_delay = load_delay
        self.load_calls: list[tuple[str, PipelineConfig]] = []

    def load_pipeline(self, model_id: str, config: PipelineConfig) -> FakeSpeechPipeline:
        self.load_calls.append((model_id, config))
        if self._load_delay:
            time.sleep(self._load_delay)
        if len(self.load_calls) <= self._fail_times:
            raise RuntimeError('model weights missing')
        return self.pipeline


class FakeDecoder:
    """Maps blob bytes to a SampleBuffer or an exception."""

    def __init__(self, mapping: dict[bytes, SampleBuffer | Exception] | None = None):
        self._mapping = dict(mapping or {})
        self.decode_calls: list[CaptureBlob] = []
        self.files: dict[Path, SampleBuffer | Exception] = {}

    def decode(self, blob: CaptureBlob) -> SampleBuffer:
        self.decode_calls.append(blob)
        result = self._mapping.get(blob.data)
        if result is None:
            raise DecodeError(f'unrecognized blob {blob.data[:8]!r}')
        if isinstance(result, Exception):
            raise result
        return result

    def decode_file(self, path: Path) -> SampleBuffer:
        if path not in self.files:
            raise FileNotFoundError(f'Audio file not found: {path}')
        result = self.files[path]
        if isinstance(result, Exception):
            raise result
        return result


class FakeCaptureHandle:
    def __init__(self, blob: CaptureBlob, error: Exception | None = None):
        self._blob = blob
        self._error = error
        self.closed = False
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True

    async def close(self) -> CaptureBlob:
        self.closed = True
        self.stopped = True
        if self._error is not None:
            raise self._error
        return self._blob


class FakeAudioInput:
    """Scripted input: the n-th opened window flushes ``blobs[n]``."""

    def __init__(self, blobs: list[bytes] | None = None, supported: set[str] | None = None):
        self._blobs = list(blobs or [])
        self._supported = supported if supported is not None else {'audio/wav'}
        self.handles: list[FakeCaptureHandle] = []
        self.opened_mime_types: list[str] = []
        self.open_calls = 0
        self.close_calls = 0
        self.flush_errors: dict[int, Exception] = {}
        self.open_error: Exception | None = None
        self.window_open_errors: dict[int, Exception] = {}

    def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error

    def close(self) -> None:
        self.close_calls += 1

    def is_type_supported(self, mime_type: str) -> bool:
        return mime_type in self._supported

    def open_capture_window(self, mime_type: str, previous: FakeCaptureHandle | None = None) -> FakeCaptureHandle:
        index = len(self.handles)
        if index in self.window_open_errors:
            raise self.window_open_errors.pop(index)
        if previous is not None:
            previous.stop()
        data = self._blobs[index] if index < len(self._blobs) else b''
        handle = FakeCaptureHandle(CaptureBlob(data=data, mime_type=mime_type), self.flush_errors.get(index))
        self.handles.append(handle)
        self.opened_mime_types.append(mime_type)
        return handle


class FakeSessionRecorder:
    def __init__(self) -> None:
        self.is_recording = False
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        self.is_recording = True

    def stop(self) -> None:
        self.stop_calls += 1
        self.is_recording = False


# --- Standard Fixtures ---


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
transcription:
  model: "base.en"
  chunk_length_s: 20.0
  stride_length_s: 4.0
  language: "en"
capture:
  window_seconds: 10.0
  container_preference: ["audio/flac", "audio/wav"]
file:
  window_seconds: 30.0
output:
  directory: "./test_output"
  save_audio: false
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p


@pytest.fixture
def fake_pipeline() -> FakeSpeechPipeline:
    return FakeSpeechPipeline()


@pytest.fixture
def fake_recorder() -> FakeSessionRecorder:
    recorder = FakeSessionRecorder()
    recorder.start()
    return recorder
