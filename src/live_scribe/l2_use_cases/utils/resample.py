"""Pure resampling helpers — no I/O, deterministic for identical input."""

from __future__ import annotations

import numpy as np

from live_scribe.l1_entities.audio_constants import SAMPLE_RATE
from live_scribe.l1_entities.sample_buffer import SampleBuffer


def resample(buffer: SampleBuffer, target_rate: int) -> SampleBuffer:
    """Resample *buffer* to *target_rate*.

    Returns *buffer* itself when the rates already match. Otherwise the signal
    is downmixed to one channel and linearly interpolated onto
    ``round(duration * target_rate)`` frames.
    """
    if target_rate <= 0:
        raise ValueError(f'target_rate must be positive, got {target_rate}')
    if buffer.sample_rate == target_rate:
        return buffer

    mono = buffer.to_mono().channel(0)
    target_len = round(buffer.duration * target_rate)
    if target_len == 0 or len(mono) == 0:
        return SampleBuffer.empty(target_rate)

    # sample positions of the output frames, in input-frame units
    positions = np.arange(target_len, dtype=np.float64) * (buffer.sample_rate / target_rate)
    out = np.interp(positions, np.arange(len(mono), dtype=np.float64), mono)
    return SampleBuffer(out.astype(np.float32), target_rate)


def to_canonical(buffer: SampleBuffer) -> SampleBuffer:
    """Mono, SAMPLE_RATE, float32 in [-1, 1] — the form the engine consumes."""
    mono = resample(buffer, SAMPLE_RATE).to_mono()
    samples = mono.channel(0)
    if samples.size and (samples.max() > 1.0 or samples.min() < -1.0):
        return SampleBuffer(np.clip(samples, -1.0, 1.0), SAMPLE_RATE)
    return mono
