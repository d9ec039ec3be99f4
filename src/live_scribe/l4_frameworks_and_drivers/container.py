"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from live_scribe.l1_entities.config import AppConfig
from live_scribe.l1_entities.errors import TranscriptionError
from live_scribe.l2_use_cases.ports.audio_decoder import AudioDecoder
from live_scribe.l2_use_cases.ports.model_resolver import ModelResolver
from live_scribe.l2_use_cases.ports.speech_pipeline import PipelineConfig, PipelineProvider
from live_scribe.l2_use_cases.transcription_engine import TranscriptionEngine
from live_scribe.l3_interface_adapters.controllers.session_controller import SessionController
from live_scribe.l3_interface_adapters.gateways.ffmpeg_audio_decoder import FfmpegAudioDecoder
from live_scribe.l3_interface_adapters.gateways.hf_model_resolver import HfModelResolver
from live_scribe.l3_interface_adapters.gateways.sounddevice_audio_input import SounddeviceAudioInput
from live_scribe.l3_interface_adapters.gateways.subprocess_whisper_pipeline import SubprocessPipelineProvider
from live_scribe.l3_interface_adapters.gateways.wav_session_recorder import WavSessionRecorder
from live_scribe.l3_interface_adapters.gateways.whisper_pipeline import WhisperCppPipelineProvider
from live_scribe.l4_frameworks_and_drivers.infra_config import InfraConfig


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing.

    The TranscriptionEngine is built here once and shared by every session
    the controller runs.
    """

    def __init__(
        self,
        config: AppConfig,
        output_dir: Path,
        infra: InfraConfig | None = None,
        on_download_progress: Callable[[int], None] | None = None,
        on_transcript_updated: Callable[[str], None] | None = None,
        on_segment_error: Callable[[int, TranscriptionError], None] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        self.output_dir = output_dir

        _infra = infra or InfraConfig()
        self.model_resolver: ModelResolver = HfModelResolver(on_progress=on_download_progress)
        self.pipeline_provider: PipelineProvider = self._build_provider(_infra, self.model_resolver)
        tc = config.transcription
        self.engine = TranscriptionEngine(
            self.pipeline_provider,
            tc.model,
            PipelineConfig(chunk_length_s=tc.chunk_length_s, stride_length_s=tc.stride_length_s, language=tc.language),
        )
        self.decoder: AudioDecoder = FfmpegAudioDecoder()
        self.audio_input = SounddeviceAudioInput(device=config.capture.device)

        self.controller = SessionController(
            engine=self.engine,
            decoder=self.decoder,
            audio_input=self.audio_input,
            recorder_factory=self._recorder_factory,
            window_seconds=config.capture.window_seconds,
            container_preference=config.capture.container_preference,
            file_window_seconds=config.file.window_seconds,
            on_transcript_updated=on_transcript_updated,
            on_segment_error=on_segment_error,
            on_progress=on_progress,
            on_status=on_status,
        )

    @staticmethod
    def _build_provider(infra: InfraConfig, resolver: ModelResolver) -> PipelineProvider:
        if infra.inference.mode == 'inprocess':
            return WhisperCppPipelineProvider(resolver)
        return SubprocessPipelineProvider(resolver)

    def _recorder_factory(self) -> WavSessionRecorder:
        wav_path = self.output_dir / 'recording.wav' if self.config.output.save_audio else None
        return WavSessionRecorder(self.audio_input, wav_path)

    def close(self) -> None:
        self.engine.close()
