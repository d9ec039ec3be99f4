"""Gateway: whisper.cpp pipeline hosted in a spawned child process.

whisper.cpp's C extension holds the GIL for a whole inference call. Hosted
in-process it would freeze the event loop that rotates capture windows, so
the model lives in a child and requests cross one duplex Pipe.

Messages are ``(kind, payload)`` tuples. Parent to child: ``('transcribe',
audio)`` or ``('shutdown', None)``. Child to parent: ``('ready', None)``,
``('ok', text)`` or ``('error', message)``.
"""

from __future__ import annotations

import contextlib
import logging
import multiprocessing as mp
import os
import threading
from multiprocessing.connection import Connection
from typing import Any

import numpy as np

from live_scribe.l1_entities.errors import ModelLoadError
from live_scribe.l2_use_cases.ports.model_resolver import ModelResolver
from live_scribe.l2_use_cases.ports.speech_pipeline import PipelineConfig

log = logging.getLogger('scribe.inference')

_LOAD_TIMEOUT = 120  # seconds; covers model init, not download (resolved in the parent)
_JOIN_TIMEOUT = 5
_SHUTDOWN = ('shutdown', None)


def _silence_c_output() -> None:
    """Point fds 1 and 2 at /dev/null for the life of the child."""
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, 1)
    os.dup2(devnull, 2)
    os.close(devnull)


def _serve(pipeline: Any, conn: Any) -> None:
    while True:
        kind, payload = conn.recv()
        if kind == 'shutdown':
            return
        try:
            conn.send(('ok', pipeline.transcribe(payload)))
        except Exception as exc:
            conn.send(('error', f'{type(exc).__name__}: {exc}'))


def _child_main(model_path: str, config: PipelineConfig, conn: Any) -> None:
    _silence_c_output()
    try:
        from live_scribe.l3_interface_adapters.gateways.whisper_pipeline import (  # noqa: PLC0415 -- deferred: child only
            WhisperCppPipelineProvider,
        )

        # model_path is already local; an absolute path or unknown name resolves to itself
        pipeline = WhisperCppPipelineProvider().load_pipeline(model_path, config)
    except Exception as exc:
        conn.send(('error', str(exc)))
        conn.close()
        return

    conn.send(('ready', None))
    try:
        _serve(pipeline, conn)
    except EOFError:
        pass  # parent went away without a shutdown message
    finally:
        pipeline.close()
        conn.close()


class SubprocessWhisperPipeline:
    """SpeechPipeline proxy whose model runs in a child process.

    One request is in flight at a time; concurrent callers queue on a lock.
    There is no inference timeout: a slow window stalls only its own segment.
    """

    def __init__(self) -> None:
        self._process: Any = None  # SpawnProcess; context returns a subclass
        self._conn: Connection | None = None
        self._lock = threading.Lock()

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def start(self, model_path: str, config: PipelineConfig) -> None:
        """Spawn the child and block until it reports ready. Raises ModelLoadError."""
        ctx = mp.get_context('spawn')
        parent_conn, child_conn = ctx.Pipe(duplex=True)
        self._process = ctx.Process(target=_child_main, args=(model_path, config, child_conn), daemon=True)
        self._process.start()
        child_conn.close()  # the child owns its end now
        self._conn = parent_conn
        log.info('Started whisper child for %s', model_path)

        if not self._conn.poll(timeout=_LOAD_TIMEOUT):
            raise ModelLoadError('Timeout waiting for model load')
        try:
            kind, payload = self._conn.recv()
        except EOFError as exc:
            raise ModelLoadError('Whisper subprocess exited unexpectedly during model load') from exc
        if kind != 'ready':
            raise ModelLoadError(f'Whisper subprocess failed to init: {payload or "unknown"}')

    def transcribe(self, audio: np.ndarray) -> str:
        if self._conn is None:
            raise RuntimeError('Model not loaded. Call start() first.')
        with self._lock:
            self._conn.send(('transcribe', audio))
            try:
                kind, payload = self._conn.recv()
            except EOFError as exc:
                raise RuntimeError('Whisper subprocess exited unexpectedly during transcription') from exc
        if kind == 'error':
            raise RuntimeError(payload)
        return payload or ''

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            with contextlib.suppress(OSError, EOFError):
                conn.send(_SHUTDOWN)
            with contextlib.suppress(OSError):
                conn.close()
        process, self._process = self._process, None
        if process is not None:
            process.join(timeout=_JOIN_TIMEOUT)
            if process.is_alive():
                log.warning('Whisper child did not exit; terminating')
                process.terminate()
                process.join(timeout=1)


class SubprocessPipelineProvider:
    """Resolves (downloads) the model in the parent, then loads it in a child process."""

    def __init__(self, resolver: ModelResolver | None = None) -> None:
        if resolver is None:
            from live_scribe.l3_interface_adapters.gateways.hf_model_resolver import (  # noqa: PLC0415 -- deferred: huggingface_hub loaded only when a model is needed
                HfModelResolver,
            )

            resolver = HfModelResolver()
        self._resolver = resolver

    def load_pipeline(self, model_id: str, config: PipelineConfig) -> SubprocessWhisperPipeline:
        model_path = self._resolver.resolve(model_id)
        pipeline = SubprocessWhisperPipeline()
        try:
            pipeline.start(model_path, config)
        except Exception:
            pipeline.close()
            raise
        return pipeline
