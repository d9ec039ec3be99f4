"""Gateway: sounddevice input stream — implements AudioInput port.

One ``sd.InputStream`` feeds any number of independent readers (the
full-session recorder plus the active capture window). The PortAudio
callback copies each block to every attached reader; readers never touch the
stream itself.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable

import numpy as np
import sounddevice as sd

from live_scribe.l1_entities.capture_window import CaptureBlob
from live_scribe.l1_entities.errors import AudioDeviceError
from live_scribe.l3_interface_adapters.gateways.container_codec import encode_container, is_encodable

log = logging.getLogger('scribe.audio')

Sink = Callable[[np.ndarray], None]


class SounddeviceAudioInput:
    """Wraps sounddevice.InputStream and fans blocks out to attached readers."""

    def __init__(self, device: int | str | None = None, channels: int = 1) -> None:
        self._device = device
        self._channels = channels
        self._sample_rate: int | None = None
        self._stream: sd.InputStream | None = None
        self._sinks: list[Sink] = []
        self._lock = threading.RLock()

    @property
    def sample_rate(self) -> int:
        if self._sample_rate is None:
            raise RuntimeError('Input stream not open')
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self) -> None:
        """Open the device at its native rate. Raises AudioDeviceError."""
        if self._stream is not None:
            return
        try:
            device_info = sd.query_devices(self._device, kind='input')
            native_sr = int(device_info['default_samplerate'])
            stream = sd.InputStream(
                samplerate=native_sr,
                channels=self._channels,
                dtype='float32',
                device=self._device,
                callback=self._callback,
            )
            stream.start()
        except Exception as exc:
            raise AudioDeviceError(f'Could not access microphone: {exc}') from exc
        self._sample_rate = native_sr
        self._stream = stream
        log.info('Input stream open: %s @ %d Hz, %d ch', device_info.get('name', '?'), native_sr, self._channels)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        with self._lock:
            self._sinks.clear()

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            log.debug('Input status: %s', status)
        # sinks run under the lock so a detach never races a late block
        with self._lock:
            for sink in self._sinks:
                sink(indata.copy())

    def attach(self, sink: Sink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def detach(self, sink: Sink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def is_type_supported(self, mime_type: str) -> bool:
        return is_encodable(mime_type)

    def open_capture_window(
        self,
        mime_type: str,
        previous: SounddeviceCaptureHandle | None = None,
    ) -> SounddeviceCaptureHandle:
        """Attach a new window, detaching *previous* between the same two blocks."""
        handle = SounddeviceCaptureHandle(self, mime_type)
        with self._lock:
            if previous is not None:
                previous.stop()
            self._sinks.append(handle.feed)
        return handle


class SounddeviceCaptureHandle:
    """Collects blocks for one capture window; encodes them on close."""

    def __init__(self, source: SounddeviceAudioInput, mime_type: str) -> None:
        self._source = source
        self._mime_type = mime_type
        self._blocks: list[np.ndarray] = []
        self._stopped = False

    def feed(self, block: np.ndarray) -> None:
        self._blocks.append(block)

    def stop(self) -> None:
        """Stop receiving blocks. Buffered audio is kept for ``close()``."""
        if not self._stopped:
            self._source.detach(self.feed)
            self._stopped = True

    async def close(self) -> CaptureBlob:
        self.stop()
        blocks, self._blocks = self._blocks, []
        if not blocks:
            return CaptureBlob(data=b'', mime_type=self._mime_type)
        frames = np.concatenate(blocks)
        data = await asyncio.to_thread(encode_container, frames, self._source.sample_rate, self._mime_type)
        return CaptureBlob(data=data, mime_type=self._mime_type)
