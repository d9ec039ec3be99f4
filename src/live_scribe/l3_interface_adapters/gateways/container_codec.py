"""Gateway: container encoding for capture windows — WAV in-process, others via ffmpeg."""

from __future__ import annotations

import io
import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
import wave

import numpy as np

from live_scribe.l1_entities.container_format import FLAC, OGG_OPUS, WAV, base_mime_type

_FFMPEG_TIMEOUT = 60  # seconds; one capture window

# ffmpeg output args per base mime type
_FFMPEG_FORMATS: dict[str, list[str]] = {
    base_mime_type(FLAC): ['-c:a', 'flac', '-f', 'flac'],
    base_mime_type(OGG_OPUS): ['-c:a', 'libopus', '-f', 'ogg'],
}


def ffmpeg_available() -> bool:
    return shutil.which('ffmpeg') is not None


def is_encodable(mime_type: str) -> bool:
    """WAV is always available; compressed containers need ffmpeg on PATH."""
    base = base_mime_type(mime_type)
    if base in (base_mime_type(WAV), 'audio/x-wav', 'audio/wave'):
        return True
    return base in _FFMPEG_FORMATS and ffmpeg_available()


def encode_wav(frames: np.ndarray, sample_rate: int) -> bytes:
    """Encode interleaved float32 frames shaped ``(n, channels)`` as 16-bit PCM WAV."""
    frames = frames.reshape(len(frames), -1)
    pcm = (np.clip(frames, -1.0, 1.0) * 32767).astype('<i2')
    out = io.BytesIO()
    with wave.open(out, 'wb') as wf:
        wf.setnchannels(frames.shape[1])
        wf.setsampwidth(2)  # int16
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
    return out.getvalue()


def encode_container(frames: np.ndarray, sample_rate: int, mime_type: str) -> bytes:
    """Encode interleaved float32 *frames* into *mime_type*.

    Raises:
        ValueError: unknown container.
        RuntimeError: ffmpeg missing, failed, or timed out.
    """
    if len(frames) == 0:
        return b''

    base = base_mime_type(mime_type)
    if base in (base_mime_type(WAV), 'audio/x-wav', 'audio/wave'):
        return encode_wav(frames, sample_rate)
    if base not in _FFMPEG_FORMATS:
        raise ValueError(f'Unsupported capture container: {mime_type}')

    if not ffmpeg_available():
        raise RuntimeError(f'ffmpeg is required to encode {mime_type} but was not found on PATH.')

    frames = frames.reshape(len(frames), -1)
    cmd = [
        'ffmpeg',
        '-f',
        'f32le',
        '-ar',
        str(sample_rate),
        '-ac',
        str(frames.shape[1]),
        '-i',
        'pipe:0',
        *_FFMPEG_FORMATS[base],
        '-v',
        'quiet',
        'pipe:1',
    ]
    try:
        result = subprocess.run(  # noqa: S603
            cmd,
            input=frames.astype('<f4').tobytes(),
            capture_output=True,
            timeout=_FFMPEG_TIMEOUT,
        )
    except subprocess.TimeoutExpired as exc:
        raise RuntimeError(f'ffmpeg timed out after {_FFMPEG_TIMEOUT}s encoding {mime_type}') from exc
    except OSError as exc:
        raise RuntimeError(f'Failed to launch ffmpeg: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise RuntimeError(f'ffmpeg exited with code {result.returncode} encoding {mime_type}\n{stderr}')
    return result.stdout
