"""Port: audio container decoder."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from live_scribe.l1_entities.capture_window import CaptureBlob
from live_scribe.l1_entities.sample_buffer import SampleBuffer


class AudioDecoder(Protocol):
    """Decodes an opaque container blob into samples at the blob's native rate."""

    def decode(self, blob: CaptureBlob) -> SampleBuffer:
        """Raises DecodeError if the bytes are not a recognized container."""
        ...

    def decode_file(self, path: Path) -> SampleBuffer:
        """Decode a whole pre-recorded file. Raises FileNotFoundError or DecodeError."""
        ...
