"""Tests for TranscribeWindowUseCase — fakes for decoder and pipeline."""

from __future__ import annotations

import numpy as np
import pytest

from live_scribe.l1_entities.capture_window import CaptureBlob, CaptureWindow
from live_scribe.l1_entities.errors import DecodeError, InferenceError, ModelLoadError
from live_scribe.l1_entities.sample_buffer import SampleBuffer
from live_scribe.l2_use_cases.transcribe_window_use_case import TranscribeWindowUseCase
from live_scribe.l2_use_cases.transcript_accumulator import TranscriptAccumulator
from live_scribe.l2_use_cases.transcription_engine import TranscriptionEngine
from tests.conftest import FakeDecoder, FakePipelineProvider, FakeSpeechPipeline, tone


def _window(sequence: int, data: bytes) -> CaptureWindow:
    return CaptureWindow(sequence=sequence, blob=CaptureBlob(data=data, mime_type='audio/wav'), started_at=0.0)


def _make(decoder: FakeDecoder, provider: FakePipelineProvider):
    errors: list[tuple[int, Exception]] = []
    statuses: list[str] = []
    uc = TranscribeWindowUseCase(
        decoder,
        TranscriptionEngine(provider, 'tiny.en'),
        on_segment_error=lambda seq, err: errors.append((seq, err)),
        on_status=statuses.append,
    )
    return uc, errors, statuses


class TestProcessWindow:
    @pytest.mark.asyncio
    async def test_success_appends_segment(self):
        decoder = FakeDecoder({b'hi': tone(2.0)})
        uc, errors, statuses = _make(decoder, FakePipelineProvider(FakeSpeechPipeline('  hello ')))
        acc = TranscriptAccumulator()

        segment = await uc.process_window(_window(0, b'hi'), acc.open_channel())

        assert segment is not None
        assert segment.text == 'hello'
        assert acc.current_text() == 'hello '
        assert errors == []
        assert statuses[-1] == 'Transcription updated.'

    @pytest.mark.asyncio
    async def test_zero_byte_blob_skipped_silently(self):
        decoder = FakeDecoder()
        provider = FakePipelineProvider()
        uc, errors, _ = _make(decoder, provider)
        acc = TranscriptAccumulator()
        channel = acc.open_channel()

        assert await uc.process_window(_window(0, b''), channel) is None

        assert decoder.decode_calls == []
        assert provider.load_calls == []
        assert errors == []
        assert channel.next_sequence == 1

    @pytest.mark.asyncio
    async def test_decoded_to_empty_buffer_skipped_without_error(self):
        decoder = FakeDecoder({b'silent': SampleBuffer.empty(16000)})
        uc, errors, statuses = _make(decoder, FakePipelineProvider())
        channel = TranscriptAccumulator().open_channel()

        assert await uc.process_window(_window(0, b'silent'), channel) is None

        assert errors == []
        assert 'Empty audio segment, skipping transcription.' in statuses
        assert channel.next_sequence == 1

    @pytest.mark.asyncio
    async def test_decode_error_reported_and_sequence_resolved(self):
        uc, errors, statuses = _make(FakeDecoder(), FakePipelineProvider())
        channel = TranscriptAccumulator().open_channel()

        assert await uc.process_window(_window(0, b'garbage'), channel) is None

        assert len(errors) == 1
        seq, err = errors[0]
        assert seq == 0
        assert isinstance(err, DecodeError)
        assert statuses[-1].startswith('Error transcribing audio:')
        assert channel.next_sequence == 1

    @pytest.mark.asyncio
    async def test_unexpected_decoder_exception_wrapped_as_decode_error(self):
        decoder = FakeDecoder({b'boom': OSError('disk gone')})
        uc, errors, _ = _make(decoder, FakePipelineProvider())

        await uc.process_window(_window(3, b'boom'), TranscriptAccumulator().open_channel())

        [(seq, err)] = errors
        assert seq == 3
        assert isinstance(err, DecodeError)
        assert 'disk gone' in str(err)

    @pytest.mark.asyncio
    async def test_inference_error_reported(self):
        decoder = FakeDecoder({b'a': tone(1.0)})
        provider = FakePipelineProvider(FakeSpeechPipeline(error=RuntimeError('oom')))
        uc, errors, _ = _make(decoder, provider)
        channel = TranscriptAccumulator().open_channel()

        await uc.process_window(_window(0, b'a'), channel)

        [(seq, err)] = errors
        assert seq == 0
        assert isinstance(err, InferenceError)
        assert channel.next_sequence == 1

    @pytest.mark.asyncio
    async def test_model_load_error_reraised_after_skip(self):
        decoder = FakeDecoder({b'a': tone(1.0)})
        uc, errors, statuses = _make(decoder, FakePipelineProvider(fail_times=1))
        channel = TranscriptAccumulator().open_channel()

        with pytest.raises(ModelLoadError):
            await uc.process_window(_window(0, b'a'), channel)

        assert errors == []
        assert channel.next_sequence == 1
        assert statuses[-1].startswith('Speech model unavailable:')

    @pytest.mark.asyncio
    async def test_blank_recognition_consumes_sequence(self):
        decoder = FakeDecoder({b'a': tone(1.0)})
        uc, errors, statuses = _make(decoder, FakePipelineProvider(FakeSpeechPipeline('   ')))
        acc = TranscriptAccumulator()

        segment = await uc.process_window(_window(0, b'a'), acc.open_channel())

        assert segment is not None
        assert segment.text == ''
        assert acc.current_text() == ''
        assert errors == []
        assert statuses[-1] == 'Nothing recognized in audio segment.'


class TestProcessBuffer:
    @pytest.mark.asyncio
    async def test_resamples_to_canonical_before_inference(self):
        pipeline = FakeSpeechPipeline('ok')
        uc, _, _ = _make(FakeDecoder(), FakePipelineProvider(pipeline))
        stereo_48k = SampleBuffer(np.full((2, 48000), 0.2, dtype=np.float32), 48000)

        await uc.process_buffer(0, stereo_48k, TranscriptAccumulator().open_channel())

        (audio,) = pipeline.transcribe_calls
        assert audio.shape == (16000,)
