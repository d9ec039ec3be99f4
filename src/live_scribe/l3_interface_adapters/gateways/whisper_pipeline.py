"""Gateway: whisper.cpp speech pipeline — implements SpeechPipeline / PipelineProvider ports."""

from __future__ import annotations

import contextlib
import os
import threading

import numpy as np
from pywhispercpp.model import Model

from live_scribe.l1_entities.audio_constants import SAMPLE_RATE
from live_scribe.l2_use_cases.ports.model_resolver import ModelResolver
from live_scribe.l2_use_cases.ports.speech_pipeline import PipelineConfig
from live_scribe.l3_interface_adapters.gateways.hf_model_resolver import HfModelResolver


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout and logging.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    old_stdout = os.dup(1)
    old_stderr = os.dup(2)
    try:
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        yield
    finally:
        os.dup2(old_stdout, 1)
        os.dup2(old_stderr, 2)
        os.close(devnull)
        os.close(old_stdout)
        os.close(old_stderr)


def chunk_starts(length: int, chunk_samples: int, step_samples: int) -> list[int]:
    """Start offsets of overlapping chunks covering ``[0, length)``."""
    starts = [0]
    while starts[-1] + chunk_samples < length:
        starts.append(starts[-1] + step_samples)
    return starts


class WhisperCppPipeline:
    """pywhispercpp model plus chunk/stride windowing.

    Audio longer than ``chunk_length_s`` is split into chunks advancing by
    ``chunk_length_s - stride_length_s``. For every chunk after the first,
    segments ending inside the leading stride were already covered by the
    previous chunk and are dropped.
    """

    def __init__(self, model: Model, config: PipelineConfig) -> None:
        self._model: Model | None = model
        self._config = config
        self._chunk_samples = int(config.chunk_length_s * SAMPLE_RATE)
        self._stride_samples = int(config.stride_length_s * SAMPLE_RATE)
        self._lock = threading.Lock()  # one inference at a time per model

    def transcribe(self, audio: np.ndarray) -> str:
        if self._model is None:
            raise RuntimeError('Pipeline closed.')

        audio = np.ascontiguousarray(audio, dtype=np.float32)
        step = self._chunk_samples - self._stride_samples
        texts: list[str] = []
        for index, start in enumerate(chunk_starts(len(audio), self._chunk_samples, step)):
            chunk = audio[start : start + self._chunk_samples]
            min_end = 0.0 if index == 0 else self._config.stride_length_s
            with self._lock, _suppress_c_stdout():
                raw_segments = self._model.transcribe(chunk, language=self._config.language)
            for seg in raw_segments:
                text = seg.text.strip()
                # t0/t1 are centiseconds
                if text and seg.t1 / 100.0 > min_end:
                    texts.append(text)
        return ' '.join(texts)

    def close(self) -> None:
        """Explicitly release the model, suppressing C-level teardown noise."""
        if self._model is not None:
            with _suppress_c_stdout():
                del self._model
                self._model = None


class WhisperCppPipelineProvider:
    """Resolves the model file and loads it in-process."""

    def __init__(self, resolver: ModelResolver | None = None) -> None:
        self._resolver = resolver or HfModelResolver()

    def load_pipeline(self, model_id: str, config: PipelineConfig) -> WhisperCppPipeline:
        model_path = self._resolver.resolve(model_id)
        with _suppress_c_stdout():
            model = Model(model_path, print_progress=False, print_realtime=False)
        return WhisperCppPipeline(model, config)
