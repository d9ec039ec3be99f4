"""Use case: transcribe a complete pre-decoded recording in fixed-size windows."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from live_scribe.l1_entities.audio_constants import FILE_WINDOW_SECONDS
from live_scribe.l1_entities.sample_buffer import SampleBuffer
from live_scribe.l2_use_cases.transcribe_window_use_case import TranscribeWindowUseCase
from live_scribe.l2_use_cases.transcript_accumulator import TranscriptAccumulator

log = logging.getLogger('scribe.file')


def window_bounds(length: int, window_samples: int) -> list[tuple[int, int]]:
    """Consecutive non-overlapping ``(start, stop)`` frame ranges; the last may be shorter."""
    if window_samples <= 0:
        raise ValueError(f'window_samples must be positive, got {window_samples}')
    count = math.ceil(length / window_samples)
    return [(i * window_samples, min((i + 1) * window_samples, length)) for i in range(count)]


class ChunkedFileTranscriber:
    """Runs a whole file through the shared engine one window at a time.

    Window *i+1* starts only after window *i* has been appended. Failures are
    isolated per window; a ModelLoadError aborts the loop.
    """

    def __init__(self, window_use_case: TranscribeWindowUseCase, accumulator: TranscriptAccumulator) -> None:
        self._window_uc = window_use_case
        self._accumulator = accumulator

    async def transcribe_file(
        self,
        buffer: SampleBuffer,
        window_seconds: float = FILE_WINDOW_SECONDS,
        on_progress: Callable[[int, int], None] | None = None,
        is_cancelled: Callable[[], bool] = lambda: False,
    ) -> int:
        """Transcribe *buffer* into the accumulator. Returns the number of windows."""
        window_samples = int(window_seconds * buffer.sample_rate)
        bounds = window_bounds(buffer.length, window_samples)
        total = len(bounds)

        self._accumulator.reset()
        channel = self._accumulator.open_channel()
        log.info('Transcribing %.1fs of audio in %d windows of %.1fs', buffer.duration, total, window_seconds)

        for index, (start, stop) in enumerate(bounds):
            if is_cancelled():
                log.info('File transcription cancelled at window %d/%d', index, total)
                break
            if on_progress is not None:
                on_progress(index, total)
            await self._window_uc.process_buffer(index, buffer.slice(start, stop), channel)

        return total
