"""Sample buffer entity — decoded audio in planar float32 form."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SampleBuffer:
    """Planar float32 samples shaped ``(channels, frames)`` at ``sample_rate``.

    The canonical form handed to the speech engine is a single channel at
    16 kHz with samples in [-1, 1].
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f'sample_rate must be positive, got {self.sample_rate}')
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(1, -1)
        if samples.ndim != 2:
            raise ValueError(f'samples must be 1-D or (channels, frames), got shape {samples.shape}')
        object.__setattr__(self, 'samples', samples)

    @classmethod
    def empty(cls, sample_rate: int, channels: int = 1) -> SampleBuffer:
        return cls(np.zeros((channels, 0), dtype=np.float32), sample_rate)

    @classmethod
    def from_interleaved(cls, data: np.ndarray, sample_rate: int, channels: int) -> SampleBuffer:
        """Build from frame-interleaved samples (``L R L R ...``)."""
        frames = len(data) // channels
        planar = np.asarray(data[: frames * channels], dtype=np.float32).reshape(frames, channels).T
        return cls(np.ascontiguousarray(planar), sample_rate)

    @property
    def channels(self) -> int:
        return self.samples.shape[0]

    @property
    def length(self) -> int:
        """Number of frames per channel."""
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]

    def to_mono(self) -> SampleBuffer:
        if self.channels == 1:
            return self
        return SampleBuffer(self.samples.mean(axis=0, dtype=np.float32), self.sample_rate)

    def slice(self, start: int, stop: int) -> SampleBuffer:
        return SampleBuffer(self.samples[:, start:stop].copy(), self.sample_rate)

    def __len__(self) -> int:
        return self.length
