"""SessionController — recording controls, status string, and transcript listeners."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from live_scribe.l1_entities.audio_constants import FILE_WINDOW_SECONDS, LIVE_WINDOW_SECONDS
from live_scribe.l1_entities.container_format import DEFAULT_CONTAINER_PREFERENCE
from live_scribe.l1_entities.errors import AudioDeviceError, DecodeError, ModelLoadError, TranscriptionError
from live_scribe.l2_use_cases.chunked_file_transcriber import ChunkedFileTranscriber
from live_scribe.l2_use_cases.ports.audio_decoder import AudioDecoder
from live_scribe.l2_use_cases.ports.audio_input import AudioInput
from live_scribe.l2_use_cases.ports.session_recorder import SessionRecorder
from live_scribe.l2_use_cases.segment_scheduler import SegmentScheduler
from live_scribe.l2_use_cases.transcribe_window_use_case import TranscribeWindowUseCase
from live_scribe.l2_use_cases.transcript_accumulator import TranscriptAccumulator
from live_scribe.l2_use_cases.transcription_engine import TranscriptionEngine

log = logging.getLogger('scribe.controller')


class SessionController:
    """Central orchestrator bridging use cases to the CLI / UI collaborators.

    Owns the transcript accumulator and the human-readable status. A new
    recording clears the transcript only when nothing unsaved is pending;
    otherwise it keeps appending to the existing transcript. The packaging
    collaborator calls ``mark_saved()`` after persisting a session.
    """

    def __init__(
        self,
        engine: TranscriptionEngine,
        decoder: AudioDecoder,
        audio_input: AudioInput,
        recorder_factory: Callable[[], SessionRecorder],
        window_seconds: float = LIVE_WINDOW_SECONDS,
        container_preference: Sequence[str] = DEFAULT_CONTAINER_PREFERENCE,
        file_window_seconds: float = FILE_WINDOW_SECONDS,
        on_transcript_updated: Callable[[str], None] | None = None,
        on_segment_error: Callable[[int, TranscriptionError], None] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._engine = engine
        self._decoder = decoder
        self._audio_input = audio_input
        self._recorder_factory = recorder_factory
        self._window_seconds = window_seconds
        self._container_preference = tuple(container_preference)
        self._file_window_seconds = file_window_seconds

        self._on_transcript_updated = on_transcript_updated
        self._on_segment_error = on_segment_error
        self._on_progress = on_progress
        self._on_status = on_status

        self.accumulator = TranscriptAccumulator(on_updated=self._transcript_updated)
        self._window_uc = TranscribeWindowUseCase(
            decoder,
            engine,
            on_segment_error=self._segment_error,
            on_status=self._set_status,
        )
        self._file_transcriber = ChunkedFileTranscriber(self._window_uc, self.accumulator)

        self._scheduler: SegmentScheduler | None = None
        self._recorder: SessionRecorder | None = None
        self._on_capture_stopped: Callable[[], None] | None = None
        self.status = 'Idle'
        self.has_unsaved_changes = False

    @property
    def is_recording(self) -> bool:
        return self._recorder is not None and self._recorder.is_recording

    @property
    def scheduler(self) -> SegmentScheduler | None:
        return self._scheduler

    @property
    def recorder(self) -> SessionRecorder | None:
        return self._recorder

    def get_transcript(self) -> str:
        return self.accumulator.current_text()

    def mark_saved(self) -> None:
        self.has_unsaved_changes = False

    def set_capture_stopped_listener(self, on_capture_stopped: Callable[[], None] | None) -> None:
        """Called when capture ends on its own, e.g. the device stopped delivering windows."""
        self._on_capture_stopped = on_capture_stopped

    async def warm_up(self) -> bool:
        """Load the speech model ahead of the first window. Returns readiness."""
        return await self._load_model(self._engine.ensure_ready)

    async def _load_model(self, load: Callable[[], Awaitable[object]]) -> bool:
        self._set_status('Loading speech model...')
        try:
            await load()
        except ModelLoadError as exc:
            self._set_status(f'Speech model failed to load: {exc}')
            return False
        self._set_status('Speech model ready.')
        return True

    def start_session(self) -> None:
        """Start full-session capture and rolling transcription on the input device."""
        if self.is_recording:
            raise RuntimeError('A recording session is already active')
        if not self.has_unsaved_changes:
            self.accumulator.reset()

        try:
            self._audio_input.open()
        except AudioDeviceError as exc:
            log.error('Failed to open input device: %s', exc, exc_info=True)
            self._set_status(str(exc))
            raise

        self._recorder = self._recorder_factory()
        self._recorder.start()
        self._scheduler = SegmentScheduler(
            self._audio_input,
            self._window_uc,
            self.accumulator,
            self._recorder,
            window_seconds=self._window_seconds,
            container_preference=self._container_preference,
            on_capture_error=self._capture_failed,
        )
        try:
            self._scheduler.start()
        except AudioDeviceError as exc:
            self._recorder.stop()
            self._audio_input.close()
            self._set_status(str(exc))
            raise
        if self._engine.load_failed:
            self._scheduler.halt_transcription()
        self.has_unsaved_changes = True
        self._set_status('Recording...')

    def stop_session(self) -> None:
        """Stop capture. In-flight windows keep transcribing into the transcript."""
        if self._scheduler is not None:
            self._scheduler.stop()
        if self._recorder is not None:
            self._recorder.stop()
        self._audio_input.close()
        self._set_status('Recording finished. Ready to save.')

    async def wait_idle(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.wait_idle()

    async def retry_transcription(self) -> bool:
        """Explicit retry after the speech model failed to load.

        The only path that clears a latched load failure; windows closed
        before this call stay untranscribed.
        """
        ready = await self._load_model(self._engine.retry)
        if ready and self._scheduler is not None:
            self._scheduler.resume_transcription()
        return ready

    async def transcribe_file(self, path: Path) -> int:
        """Offline mode: decode *path* once, then transcribe it window by window."""
        self._set_status('Loading audio file for transcription...')
        try:
            buffer = await asyncio.to_thread(self._decoder.decode_file, path)
        except (FileNotFoundError, DecodeError) as exc:
            log.error('Failed to load audio file: %s', exc, exc_info=True)
            self._set_status(f'Error transcribing file: {exc}')
            raise

        try:
            total = await self._file_transcriber.transcribe_file(
                buffer,
                window_seconds=self._file_window_seconds,
                on_progress=self._progress,
            )
        except ModelLoadError as exc:
            self._set_status(f'Error transcribing file: {exc}')
            raise

        self.has_unsaved_changes = True
        self._set_status('File transcribed successfully.')
        return total

    def _capture_failed(self, error: Exception) -> None:
        if self._recorder is not None:
            self._recorder.stop()
        self._audio_input.close()
        self._set_status(f'Recording stopped: could not open the next capture window ({error})')
        if self._on_capture_stopped is not None:
            self._on_capture_stopped()

    def _progress(self, index: int, total: int) -> None:
        self._set_status(f'Transcribing chunk {index + 1} of {total}...')
        if self._on_progress is not None:
            self._on_progress(index, total)

    def _transcript_updated(self, text: str) -> None:
        if self._on_transcript_updated is not None:
            self._on_transcript_updated(text)

    def _segment_error(self, sequence: int, error: TranscriptionError) -> None:
        if self._on_segment_error is not None:
            self._on_segment_error(sequence, error)

    def _set_status(self, text: str) -> None:
        self.status = text
        log.debug('Status: %s', text)
        if self._on_status is not None:
            self._on_status(text)
