"""Tests for the capture container preference chain."""

from live_scribe.l1_entities.container_format import (
    DEFAULT_CONTAINER_PREFERENCE,
    FLAC,
    OGG_OPUS,
    PLATFORM_DEFAULT_CONTAINER,
    WAV,
    base_mime_type,
    choose_container,
)


class TestChooseContainer:
    def test_prefers_uncompressed_pcm(self):
        assert choose_container(DEFAULT_CONTAINER_PREFERENCE, lambda m: True) == WAV

    def test_falls_through_to_lossless_then_lossy(self):
        assert choose_container(DEFAULT_CONTAINER_PREFERENCE, lambda m: m != WAV) == FLAC
        assert choose_container(DEFAULT_CONTAINER_PREFERENCE, lambda m: m == OGG_OPUS) == OGG_OPUS

    def test_platform_default_when_nothing_supported(self):
        assert choose_container(DEFAULT_CONTAINER_PREFERENCE, lambda m: False) == PLATFORM_DEFAULT_CONTAINER

    def test_evaluates_in_order_and_stops_at_first_hit(self):
        asked: list[str] = []

        def supported(mime: str) -> bool:
            asked.append(mime)
            return mime == FLAC

        choose_container(DEFAULT_CONTAINER_PREFERENCE, supported)
        assert asked == [WAV, FLAC]


class TestBaseMimeType:
    def test_strips_codec_parameters(self):
        assert base_mime_type('audio/ogg; codecs=opus') == 'audio/ogg'

    def test_lowercases(self):
        assert base_mime_type('Audio/WAV') == 'audio/wav'
