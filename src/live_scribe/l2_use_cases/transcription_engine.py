"""Use case: shared speech engine — single-flight model load, one buffer in, text out."""

from __future__ import annotations

import asyncio
import logging

from live_scribe.l1_entities.errors import EmptyInputError, InferenceError, ModelLoadError
from live_scribe.l1_entities.sample_buffer import SampleBuffer
from live_scribe.l2_use_cases.ports.speech_pipeline import PipelineConfig, PipelineProvider, SpeechPipeline

log = logging.getLogger('scribe.engine')


class TranscriptionEngine:
    """Owns the loaded pipeline for the process lifetime.

    Constructed once at startup and passed to every component that needs it.
    Concurrent first callers of ``ensure_ready()`` await the same in-flight
    load. A failed load is latched: every later caller gets the same
    ModelLoadError until ``retry()`` is called explicitly.
    """

    def __init__(
        self,
        provider: PipelineProvider,
        model_id: str,
        config: PipelineConfig | None = None,
    ) -> None:
        self._provider = provider
        self._model_id = model_id
        self._config = config or PipelineConfig()
        self._pipeline: SpeechPipeline | None = None
        self._loading: asyncio.Task[SpeechPipeline] | None = None
        self._load_error: ModelLoadError | None = None

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def is_ready(self) -> bool:
        return self._pipeline is not None

    @property
    def load_failed(self) -> bool:
        return self._load_error is not None

    async def ensure_ready(self) -> SpeechPipeline:
        """Load the pipeline at most once. Raises ModelLoadError on failure."""
        if self._pipeline is not None:
            return self._pipeline
        if self._load_error is not None:
            raise ModelLoadError(str(self._load_error)) from self._load_error
        if self._loading is None:
            self._loading = asyncio.ensure_future(self._load())
        # shield: one cancelled waiter must not abort the load the others share
        return await asyncio.shield(self._loading)

    async def _load(self) -> SpeechPipeline:
        log.info(
            'Loading speech pipeline %s (chunk=%.1fs stride=%.1fs)',
            self._model_id,
            self._config.chunk_length_s,
            self._config.stride_length_s,
        )
        try:
            pipeline = await asyncio.to_thread(self._provider.load_pipeline, self._model_id, self._config)
        except ModelLoadError as exc:
            self._fail_load(exc)
            raise
        except Exception as exc:
            error = ModelLoadError(f'Failed to load model {self._model_id}: {exc}')
            self._fail_load(error)
            raise error from exc
        self._pipeline = pipeline
        log.info('Speech pipeline ready')
        return pipeline

    def _fail_load(self, error: ModelLoadError) -> None:
        self._loading = None
        self._load_error = error
        log.error('Failed to load speech pipeline %s', self._model_id, exc_info=error)

    async def retry(self) -> SpeechPipeline:
        """Forget a latched load failure and load again."""
        self._load_error = None
        return await self.ensure_ready()

    async def transcribe(self, buffer: SampleBuffer) -> str:
        """Transcribe one canonical buffer. Empty text means nothing was recognized."""
        if buffer.length == 0:
            raise EmptyInputError('Empty audio buffer')

        pipeline = await self.ensure_ready()
        try:
            text = await asyncio.to_thread(pipeline.transcribe, buffer.channel(0))
        except Exception as exc:
            raise InferenceError(f'{type(exc).__name__}: {exc}') from exc
        return (text or '').strip()

    def close(self) -> None:
        """Release the pipeline. Only called at process exit."""
        if self._pipeline is not None:
            self._pipeline.close()
            self._pipeline = None
        self._loading = None
        self._load_error = None
