"""Use case: slice one live input stream into back-to-back capture windows."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from live_scribe.l1_entities.audio_constants import LIVE_WINDOW_SECONDS
from live_scribe.l1_entities.capture_window import CaptureWindow
from live_scribe.l1_entities.container_format import DEFAULT_CONTAINER_PREFERENCE, choose_container
from live_scribe.l1_entities.errors import AudioDeviceError, DecodeError, ModelLoadError
from live_scribe.l2_use_cases.ports.audio_input import AudioInput, CaptureHandle
from live_scribe.l2_use_cases.ports.session_recorder import SessionRecorder
from live_scribe.l2_use_cases.transcribe_window_use_case import TranscribeWindowUseCase
from live_scribe.l2_use_cases.transcript_accumulator import OrderedSegmentChannel, TranscriptAccumulator

log = logging.getLogger('scribe.scheduler')


class SegmentScheduler:
    """Rotates short-lived capture windows over the input stream until stopped.

    Each closed window is flushed, decoded and transcribed in its own task, so
    the next window opens without waiting on inference. Ordering of the
    transcript is the channel's job, not the scheduler's.
    """

    def __init__(
        self,
        audio_input: AudioInput,
        window_use_case: TranscribeWindowUseCase,
        accumulator: TranscriptAccumulator,
        recorder: SessionRecorder,
        window_seconds: float = LIVE_WINDOW_SECONDS,
        container_preference: Sequence[str] = DEFAULT_CONTAINER_PREFERENCE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_capture_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._input = audio_input
        self._window_uc = window_use_case
        self._accumulator = accumulator
        self._recorder = recorder
        self._window_seconds = window_seconds
        self._preference = tuple(container_preference)
        self._sleep = sleep
        self._clock = clock
        self._on_capture_error = on_capture_error

        self._mime_type: str | None = None
        self._channel: OrderedSegmentChannel | None = None
        self._handle: CaptureHandle | None = None
        self._handle_started: float = 0.0
        self._sequence = 0
        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._halted = False
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def mime_type(self) -> str | None:
        return self._mime_type

    @property
    def sequence_count(self) -> int:
        """Number of windows closed so far this session."""
        return self._sequence

    @property
    def transcription_halted(self) -> bool:
        return self._halted

    def start(self) -> None:
        """Open window 0 and begin rotating every ``window_seconds``.

        Raises AudioDeviceError, leaving the scheduler stopped, when the first
        window cannot be opened.
        """
        if self._running:
            raise RuntimeError('SegmentScheduler already running')
        mime_type = choose_container(self._preference, self._input.is_type_supported)
        try:
            handle = self._input.open_capture_window(mime_type)
        except Exception as exc:
            log.error('Failed to open the first capture window', exc_info=True)
            raise AudioDeviceError(f'Could not open capture window: {exc}') from exc
        self._mime_type = mime_type
        self._channel = self._accumulator.open_channel()
        self._sequence = 0
        self._halted = False
        self._running = True
        self._handle, self._handle_started = handle, self._clock()
        log.info('Segment capture started (%s, %.1fs windows)', self._mime_type, self._window_seconds)
        self._timer = asyncio.ensure_future(self._tick_loop())

    async def _tick_loop(self) -> None:
        while self._running:
            await self._sleep(self._window_seconds)
            if not self._running:
                break
            self.rotate()

    def rotate(self) -> None:
        """Close the active window and open the next one on the same stream."""
        if not self._running:
            return
        if not self._recorder.is_recording:
            log.info('Session recorder stopped; no further windows')
            self._close_active()
            self._running = False
            return
        previous, started = self._handle, self._handle_started
        try:
            self._handle = self._input.open_capture_window(self._mime_type, previous)
        except Exception as exc:
            log.error('Failed to open capture window %d; stopping capture', self._sequence + 1, exc_info=True)
            self.stop()
            if self._on_capture_error is not None:
                self._on_capture_error(exc)
            return
        self._handle_started = self._clock()
        self._dispatch(previous, started)

    def stop(self) -> None:
        """Cancel the timer and close the in-flight partial window."""
        if not self._running:
            return
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._close_active()
        log.info('Segment capture stopped after %d windows', self._sequence)

    def halt_transcription(self) -> None:
        """Keep capturing but leave every later window untranscribed."""
        self._halted = True

    def resume_transcription(self) -> None:
        """Explicit retry after a ModelLoadError halted transcription."""
        self._halted = False

    async def wait_idle(self) -> None:
        """Wait for every window already closed to finish transcription."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _close_active(self) -> None:
        handle, started = self._handle, self._handle_started
        self._handle = None
        if handle is not None:
            handle.stop()
            self._dispatch(handle, started)

    def _dispatch(self, handle: CaptureHandle | None, started: float) -> None:
        if handle is None:
            return
        sequence = self._sequence
        self._sequence += 1
        task = asyncio.ensure_future(self._finish_window(handle, sequence, started, self._channel))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _finish_window(
        self,
        handle: CaptureHandle,
        sequence: int,
        started: float,
        channel: OrderedSegmentChannel,
    ) -> None:
        try:
            blob = await handle.close()
        except Exception as exc:
            log.error('Window %d failed to flush', sequence, exc_info=True)
            channel.skip(sequence)
            self._window_uc.report_failure(sequence, DecodeError(f'Capture flush failed: {exc}'))
            return

        if self._halted:
            log.debug('Transcription halted; window %d captured but not transcribed', sequence)
            channel.skip(sequence)
            return

        window = CaptureWindow(sequence=sequence, blob=blob, started_at=started)
        try:
            await self._window_uc.process_window(window, channel)
        except ModelLoadError:
            self._halted = True
            log.error('Transcription halted for this session: model failed to load')
