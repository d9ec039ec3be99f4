"""Port: live audio input stream shared by the session recorder and capture windows."""

from __future__ import annotations

from typing import Protocol

from live_scribe.l1_entities.capture_window import CaptureBlob


class CaptureHandle(Protocol):
    """One short-lived reader over the input stream."""

    def stop(self) -> None:
        """Stop receiving audio now; buffered audio stays available to ``close()``."""
        ...

    async def close(self) -> CaptureBlob:
        """Stop reading and flush the buffered audio as a container blob."""
        ...


class AudioInput(Protocol):
    """Abstract input-device stream. Readers are independent; none mutates the stream."""

    def open(self) -> None:
        """Open the device. Raises AudioDeviceError."""
        ...

    def close(self) -> None:
        """Close the device; attached readers stop receiving audio."""
        ...

    def is_type_supported(self, mime_type: str) -> bool:
        """Whether capture windows can be encoded into *mime_type*."""
        ...

    def open_capture_window(self, mime_type: str, previous: CaptureHandle | None = None) -> CaptureHandle:
        """Start a new reader that encodes into *mime_type* when closed.

        *previous* is stopped in the same step, so consecutive windows
        neither overlap nor drop a block.
        """
        ...
