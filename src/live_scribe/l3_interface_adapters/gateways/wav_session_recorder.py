"""Gateway: full-session WAV recorder — implements SessionRecorder port."""

from __future__ import annotations

import logging
import queue
import threading
import wave
from pathlib import Path

import numpy as np

from live_scribe.l3_interface_adapters.gateways.sounddevice_audio_input import SounddeviceAudioInput

log = logging.getLogger('scribe.recorder')


class WavSessionRecorder:
    """Writes every block from the input stream to one WAV file until stopped.

    With *wav_path* ``None`` the recorder only tracks the session lifetime
    (archival disabled); capture windows still key off ``is_recording``.
    """

    def __init__(self, audio_input: SounddeviceAudioInput, wav_path: Path | None) -> None:
        self._input = audio_input
        self._wav_path = wav_path
        self._queue: queue.Queue[np.ndarray | None] = queue.Queue()
        self._writer: threading.Thread | None = None
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def wav_path(self) -> Path | None:
        return self._wav_path

    def start(self) -> None:
        if self._recording:
            return
        self._recording = True
        if self._wav_path is None:
            return
        self._queue = queue.Queue()
        self._writer = threading.Thread(
            target=self._write_loop,
            args=(self._wav_path, self._input.sample_rate, self._input.channels),
            daemon=True,
        )
        self._writer.start()
        self._input.attach(self._queue.put)
        log.info('Session recording → %s', self._wav_path)

    def stop(self) -> None:
        """Detach from the stream, flush and close the WAV file."""
        if not self._recording:
            return
        self._recording = False
        if self._writer is None:
            return
        self._input.detach(self._queue.put)
        self._queue.put(None)
        self._writer.join(timeout=5)
        self._writer = None
        log.info('Session recording closed')

    def _write_loop(self, wav_path: Path, sample_rate: int, channels: int) -> None:
        wav_path.parent.mkdir(parents=True, exist_ok=True)
        wf = wave.open(str(wav_path), 'wb')
        wf.setnchannels(channels)
        wf.setsampwidth(2)  # int16
        wf.setframerate(sample_rate)
        try:
            while True:
                data = self._queue.get()
                if data is None:
                    break
                pcm = np.clip(data, -1.0, 1.0)
                wf.writeframes((pcm * 32767).astype(np.int16).tobytes())
        finally:
            wf.close()
