"""Port: speech-to-text inference pipeline and its provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np


@dataclass(frozen=True)
class PipelineConfig:
    """Windowing hyperparameters, constant for the process."""

    chunk_length_s: float = 15.0
    stride_length_s: float = 5.0
    language: str = 'en'

    def __post_init__(self) -> None:
        if self.stride_length_s >= self.chunk_length_s:
            raise ValueError(
                f'stride_length_s ({self.stride_length_s}) must be shorter than chunk_length_s ({self.chunk_length_s})'
            )


class SpeechPipeline(Protocol):
    """A loaded model. Zero framework types leak through."""

    def transcribe(self, audio: np.ndarray) -> str:
        """Transcribe mono float32 samples at the canonical rate."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...


class PipelineProvider(Protocol):
    """Loads pipelines. May block for a long time (download + model init)."""

    def load_pipeline(self, model_id: str, config: PipelineConfig) -> SpeechPipeline:
        """Raises ModelLoadError (or any exception) when the model cannot be loaded."""
        ...
