"""Tests for WavSessionRecorder — fed through a fake input stream."""

from __future__ import annotations

import wave
from pathlib import Path

import numpy as np

from live_scribe.l3_interface_adapters.gateways.wav_session_recorder import WavSessionRecorder


class _FakeStream:
    sample_rate = 16000
    channels = 1

    def __init__(self) -> None:
        self.sinks: list = []

    def attach(self, sink) -> None:
        self.sinks.append(sink)

    def detach(self, sink) -> None:
        self.sinks.remove(sink)

    def push(self, block: np.ndarray) -> None:
        for sink in list(self.sinks):
            sink(block)


class TestWavSessionRecorder:
    def test_records_all_blocks_to_wav(self, tmp_path: Path):
        stream = _FakeStream()
        path = tmp_path / 'session' / 'recording.wav'
        recorder = WavSessionRecorder(stream, path)

        recorder.start()
        assert recorder.is_recording
        stream.push(np.full((1600, 1), 0.5, dtype=np.float32))
        stream.push(np.full((1600, 1), -0.5, dtype=np.float32))
        recorder.stop()

        assert not recorder.is_recording
        assert stream.sinks == []
        with wave.open(str(path), 'rb') as wf:
            assert wf.getframerate() == 16000
            assert wf.getnchannels() == 1
            assert wf.getnframes() == 3200
            pcm = np.frombuffer(wf.readframes(3200), dtype=np.int16)
        assert pcm[0] == 16383
        assert pcm[-1] == -16383

    def test_without_path_only_tracks_state(self):
        stream = _FakeStream()
        recorder = WavSessionRecorder(stream, None)

        recorder.start()
        assert recorder.is_recording
        assert stream.sinks == []
        recorder.stop()
        assert not recorder.is_recording

    def test_start_and_stop_are_idempotent(self, tmp_path: Path):
        stream = _FakeStream()
        recorder = WavSessionRecorder(stream, tmp_path / 'r.wav')

        recorder.start()
        recorder.start()
        assert len(stream.sinks) == 1
        recorder.stop()
        recorder.stop()
        assert (tmp_path / 'r.wav').exists()
