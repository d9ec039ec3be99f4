"""Tests for container_codec — WAV in-process, ffmpeg mocked."""

from __future__ import annotations

import subprocess
import wave
from io import BytesIO
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from live_scribe.l1_entities.container_format import FLAC, OGG_OPUS, WAV
from live_scribe.l3_interface_adapters.gateways.container_codec import encode_container, encode_wav, is_encodable

MODULE = 'live_scribe.l3_interface_adapters.gateways.container_codec'


class TestIsEncodable:
    def test_wav_always_supported(self):
        with patch(f'{MODULE}.shutil.which', return_value=None):
            assert is_encodable(WAV)
            assert is_encodable('audio/x-wav')

    def test_flac_needs_ffmpeg(self):
        with patch(f'{MODULE}.shutil.which', return_value=None):
            assert not is_encodable(FLAC)
        with patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg'):
            assert is_encodable(FLAC)
            assert is_encodable(OGG_OPUS)

    def test_unknown_never_supported(self):
        with patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg'):
            assert not is_encodable('audio/webm;codecs=opus')


class TestEncodeWav:
    def test_header_and_frames(self):
        frames = np.zeros((480, 2), dtype=np.float32)
        data = encode_wav(frames, 48000)
        with wave.open(BytesIO(data), 'rb') as wf:
            assert wf.getnchannels() == 2
            assert wf.getframerate() == 48000
            assert wf.getsampwidth() == 2
            assert wf.getnframes() == 480

    def test_clips_out_of_range(self):
        data = encode_wav(np.array([[2.0], [-2.0]], dtype=np.float32), 16000)
        with wave.open(BytesIO(data), 'rb') as wf:
            pcm = np.frombuffer(wf.readframes(2), dtype='<i2')
        assert pcm.tolist() == [32767, -32767]


class TestEncodeContainer:
    def test_empty_frames_give_empty_bytes(self):
        assert encode_container(np.zeros((0, 1), dtype=np.float32), 16000, FLAC) == b''

    def test_unknown_container_raises(self):
        with pytest.raises(ValueError, match='Unsupported'):
            encode_container(np.zeros((10, 1), dtype=np.float32), 16000, 'audio/webm')

    def test_flac_without_ffmpeg_raises(self):
        with patch(f'{MODULE}.shutil.which', return_value=None):
            with pytest.raises(RuntimeError, match='ffmpeg is required'):
                encode_container(np.zeros((10, 1), dtype=np.float32), 16000, FLAC)

    def test_flac_pipes_raw_float_to_ffmpeg(self):
        result = MagicMock(returncode=0, stdout=b'fLaC...', stderr=b'')
        frames = np.full((10, 1), 0.5, dtype=np.float32)
        with (
            patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg'),
            patch(f'{MODULE}.subprocess.run', return_value=result) as mock_run,
        ):
            assert encode_container(frames, 44100, FLAC) == b'fLaC...'

        cmd = mock_run.call_args.args[0]
        assert cmd[:7] == ['ffmpeg', '-f', 'f32le', '-ar', '44100', '-ac', '1']
        assert 'flac' in cmd
        assert mock_run.call_args.kwargs['input'] == frames.astype('<f4').tobytes()

    def test_ffmpeg_failure_raises(self):
        result = MagicMock(returncode=1, stdout=b'', stderr=b'Unknown encoder')
        with (
            patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg'),
            patch(f'{MODULE}.subprocess.run', return_value=result),
        ):
            with pytest.raises(RuntimeError, match='Unknown encoder'):
                encode_container(np.zeros((10, 1), dtype=np.float32), 48000, OGG_OPUS)

    def test_ffmpeg_timeout_raises(self):
        with (
            patch(f'{MODULE}.shutil.which', return_value='/usr/bin/ffmpeg'),
            patch(f'{MODULE}.subprocess.run', side_effect=subprocess.TimeoutExpired('ffmpeg', 60)),
        ):
            with pytest.raises(RuntimeError, match='timed out'):
                encode_container(np.zeros((10, 1), dtype=np.float32), 48000, FLAC)
