"""Use case: decode → resample → transcribe → ordered append for one window."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from live_scribe.l1_entities.capture_window import CaptureWindow
from live_scribe.l1_entities.errors import (
    DecodeError,
    EmptyInputError,
    InferenceError,
    ModelLoadError,
    TranscriptionError,
)
from live_scribe.l1_entities.sample_buffer import SampleBuffer
from live_scribe.l1_entities.transcript import TranscriptSegment
from live_scribe.l2_use_cases.ports.audio_decoder import AudioDecoder
from live_scribe.l2_use_cases.transcript_accumulator import OrderedSegmentChannel
from live_scribe.l2_use_cases.transcription_engine import TranscriptionEngine
from live_scribe.l2_use_cases.utils.resample import to_canonical

log = logging.getLogger('scribe.window')


class TranscribeWindowUseCase:
    """Runs one window through the pipeline and isolates its failures.

    Every sequence number handed in is resolved on *channel* exactly once,
    either as a segment or as a skip, so later windows are never held back.
    DecodeError and InferenceError are reported via ``on_segment_error``;
    EmptyInputError only updates status; ModelLoadError is re-raised.
    """

    def __init__(
        self,
        decoder: AudioDecoder,
        engine: TranscriptionEngine,
        on_segment_error: Callable[[int, TranscriptionError], None] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._decoder = decoder
        self._engine = engine
        self._on_segment_error = on_segment_error
        self._on_status = on_status

    def set_listeners(
        self,
        on_segment_error: Callable[[int, TranscriptionError], None] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._on_segment_error = on_segment_error
        self._on_status = on_status

    async def process_window(self, window: CaptureWindow, channel: OrderedSegmentChannel) -> TranscriptSegment | None:
        """Decode a closed capture window, then transcribe it."""
        if window.blob.size == 0:
            log.debug('Window %d flushed zero bytes, dropping', window.sequence)
            channel.skip(window.sequence)
            return None

        try:
            buffer = await asyncio.to_thread(self._decoder.decode, window.blob)
        except DecodeError as exc:
            self._fail(window.sequence, exc, channel)
            return None
        except Exception as exc:
            self._fail(window.sequence, DecodeError(f'{type(exc).__name__}: {exc}'), channel)
            return None

        return await self.process_buffer(window.sequence, buffer, channel)

    async def process_buffer(
        self,
        sequence: int,
        buffer: SampleBuffer,
        channel: OrderedSegmentChannel,
    ) -> TranscriptSegment | None:
        """Resample an already-decoded buffer and transcribe it."""
        self._status(f'Transcribing audio segment {sequence + 1}...')
        try:
            text = await self._engine.transcribe(to_canonical(buffer))
        except EmptyInputError:
            log.info('Window %d is empty, skipping transcription', sequence)
            self._status('Empty audio segment, skipping transcription.')
            channel.skip(sequence)
            return None
        except ModelLoadError as exc:
            channel.skip(sequence)
            self._status(f'Speech model unavailable: {exc}')
            raise
        except InferenceError as exc:
            self._fail(sequence, exc, channel)
            return None
        except Exception as exc:
            self._fail(sequence, InferenceError(f'{type(exc).__name__}: {exc}'), channel)
            return None

        segment = TranscriptSegment(sequence=sequence, text=text)
        channel.submit(segment)
        self._status('Transcription updated.' if text else 'Nothing recognized in audio segment.')
        return segment

    def report_failure(self, sequence: int, error: TranscriptionError) -> None:
        """Surface an isolated per-window failure to listeners."""
        log.error('Window %d failed: %s', sequence, error, exc_info=error)
        self._status(f'Error transcribing audio: {error}')
        if self._on_segment_error is not None:
            self._on_segment_error(sequence, error)

    def _fail(self, sequence: int, error: TranscriptionError, channel: OrderedSegmentChannel) -> None:
        channel.skip(sequence)
        self.report_failure(sequence, error)

    def _status(self, text: str) -> None:
        if self._on_status is not None:
            self._on_status(text)
