"""Gateway: audio decoder — implements AudioDecoder port.

WAV blobs are parsed in-process with the ``wave`` module; every other
container is probed with ffprobe and decoded by ffmpeg at its native rate
and channel count. Resampling is not done here.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
import wave
from io import BytesIO
from pathlib import Path

import numpy as np

from live_scribe.l1_entities.audio_constants import SAMPLE_RATE
from live_scribe.l1_entities.capture_window import CaptureBlob
from live_scribe.l1_entities.container_format import WAV, base_mime_type
from live_scribe.l1_entities.errors import DecodeError
from live_scribe.l1_entities.sample_buffer import SampleBuffer

log = logging.getLogger('scribe.decoder')

_FFMPEG_TIMEOUT = 300  # seconds
_WAV_TYPES = {base_mime_type(WAV), 'audio/x-wav', 'audio/wave', 'audio/vnd.wave'}


def _pcm_to_float(raw: bytes, sample_width: int) -> np.ndarray:
    """Convert little-endian integer PCM to float32 in [-1, 1]."""
    if sample_width == 1:
        return (np.frombuffer(raw, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    if sample_width == 2:
        return np.frombuffer(raw, dtype='<i2').astype(np.float32) / 32768.0
    if sample_width == 3:
        b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        ints = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
        ints = np.where(ints & 0x800000, ints - 0x1000000, ints)
        return ints.astype(np.float32) / 8388608.0
    if sample_width == 4:
        return np.frombuffer(raw, dtype='<i4').astype(np.float32) / 2147483648.0
    raise DecodeError(f'Unsupported WAV sample width: {sample_width} bytes')


def decode_wav_bytes(data: bytes) -> SampleBuffer:
    try:
        with wave.open(BytesIO(data), 'rb') as wf:
            channels = wf.getnchannels()
            sample_width = wf.getsampwidth()
            rate = wf.getframerate()
            raw = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as exc:
        raise DecodeError(f'Invalid WAV data: {exc}') from exc
    if channels <= 0 or rate <= 0:
        raise DecodeError(f'Invalid WAV header: channels={channels} rate={rate}')
    return SampleBuffer.from_interleaved(_pcm_to_float(raw, sample_width), rate, channels)


class FfmpegAudioDecoder:
    """Decodes capture blobs and audio files into native-rate SampleBuffers."""

    def decode(self, blob: CaptureBlob) -> SampleBuffer:
        if blob.size == 0:
            return SampleBuffer.empty(SAMPLE_RATE)
        if base_mime_type(blob.mime_type) in _WAV_TYPES or blob.data[:4] == b'RIFF':
            return decode_wav_bytes(blob.data)
        return self._decode_with_ffmpeg('pipe:0', blob.data, blob.mime_type)

    def decode_file(self, path: Path) -> SampleBuffer:
        """Decode a whole file once up front (offline mode).

        Non-WAV files are handed to ffmpeg by path, so containers that need
        seeking (MP4 with a trailing moov atom) decode too.
        """
        if not path.exists():
            raise FileNotFoundError(f'Audio file not found: {path}')
        if path.stat().st_size == 0:
            raise DecodeError(f'Audio file appears to be empty: {path}')
        with path.open('rb') as f:
            is_riff = f.read(4) == b'RIFF'
        if is_riff or path.suffix.lower() in ('.wav', '.wave'):
            return decode_wav_bytes(path.read_bytes())
        return self._decode_with_ffmpeg(str(path), None, path.name)

    def _decode_with_ffmpeg(self, source: str, data: bytes | None, label: str) -> SampleBuffer:
        """Decode *source*, either ``pipe:0`` fed with *data* or a file path."""
        if shutil.which('ffmpeg') is None or shutil.which('ffprobe') is None:
            raise DecodeError(
                f'ffmpeg/ffprobe are required to decode {label} but were not found on PATH.\n'
                '  macOS:  brew install ffmpeg\n  Debian: apt install ffmpeg'
            )

        rate, channels = self._probe(source, data, label)
        stdout = _run(['ffmpeg', '-i', source, '-f', 'f32le', '-v', 'quiet', 'pipe:1'], data, label)
        audio = np.frombuffer(stdout, dtype='<f4')
        log.debug('Decoded %s: %d samples, %d Hz, %d ch', label, len(audio), rate, channels)
        return SampleBuffer.from_interleaved(audio, rate, channels)

    @staticmethod
    def _probe(source: str, data: bytes | None, label: str) -> tuple[int, int]:
        stdout = _run(
            [
                'ffprobe',
                '-v',
                'error',
                '-select_streams',
                'a:0',
                '-show_entries',
                'stream=sample_rate,channels',
                '-of',
                'json',
                source,
            ],
            data,
            label,
        )
        try:
            stream = json.loads(stdout)['streams'][0]
            return int(stream['sample_rate']), int(stream['channels'])
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise DecodeError(f'No decodable audio stream in {label}') from exc


def _run(cmd: list[str], data: bytes | None, label: str) -> bytes:
    try:
        stdin = None if data is not None else subprocess.DEVNULL
        result = subprocess.run(cmd, input=data, stdin=stdin, capture_output=True, timeout=_FFMPEG_TIMEOUT)  # noqa: S603
    except subprocess.TimeoutExpired as exc:
        raise DecodeError(f'{cmd[0]} timed out after {_FFMPEG_TIMEOUT}s decoding {label}') from exc
    except OSError as exc:
        raise DecodeError(f'Failed to launch {cmd[0]}: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise DecodeError(f'{cmd[0]} exited with code {result.returncode} for {label}\n{stderr}')
    return result.stdout
