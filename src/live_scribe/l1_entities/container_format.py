"""L1 entity: capture container preference chain."""

from __future__ import annotations

from collections.abc import Callable, Sequence

WAV = 'audio/wav'
FLAC = 'audio/flac'
OGG_OPUS = 'audio/ogg;codecs=opus'

# uncompressed PCM > lossless streaming > lossy streaming
DEFAULT_CONTAINER_PREFERENCE: tuple[str, ...] = (WAV, FLAC, OGG_OPUS)
PLATFORM_DEFAULT_CONTAINER = WAV


def choose_container(preference: Sequence[str], is_supported: Callable[[str], bool]) -> str:
    """Return the first supported mime type, or the platform default."""
    for mime_type in preference:
        if is_supported(mime_type):
            return mime_type
    return PLATFORM_DEFAULT_CONTAINER


def base_mime_type(mime_type: str) -> str:
    """Strip codec parameters: ``audio/ogg;codecs=opus`` -> ``audio/ogg``."""
    return mime_type.split(';', 1)[0].strip().lower()
