"""CLI entry point for live-scribe."""

from __future__ import annotations

import re
import sys
from datetime import datetime
from pathlib import Path

import click

from live_scribe import __version__


def _make_session_dir(base_dir: Path, label: str | None) -> Path:
    """Create a timestamped session subdirectory under base_dir."""
    stamp = datetime.now().strftime('%Y-%m-%d_%H%M%S')
    if label:
        safe_label = re.sub(r'[^\w\-]', '_', label)
        name = f'{stamp}_{safe_label}'
    else:
        name = stamp
    session_dir = base_dir / name
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def _err(msg: str) -> None:
    click.echo(msg, err=True)


class _Reporter:
    """Echoes controller events to stderr; only the final transcript goes to stdout."""

    def __init__(self) -> None:
        self._last_status = ''
        self.segment_errors: list[int] = []

    def status(self, text: str) -> None:
        if text != self._last_status:
            self._last_status = text
            _err(f'[status] {text}')

    def transcript(self, text: str) -> None:
        _err(f'[transcript] {text}')

    def segment_error(self, sequence: int, error: Exception) -> None:
        self.segment_errors.append(sequence)
        _err(f'[window {sequence}] {type(error).__name__}: {error}')

    def progress(self, index: int, total: int) -> None:
        _err(f'[progress] {index + 1}/{total}')

    def download(self, percent: int) -> None:
        _err(f'[model] downloading: {percent}%')


@click.command()
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option(
    '-o',
    '--output-dir',
    default=None,
    type=click.Path(),
    help='Base output directory (session subfolder created automatically).',
)
@click.option(
    '-l',
    '--label',
    default=None,
    help="Session label appended to the timestamp folder (e.g. 'standup').",
)
@click.option(
    '-f',
    '--audio-file',
    'audio_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Transcribe a pre-recorded audio file instead of the microphone.',
)
@click.option(
    '-d',
    '--duration',
    default=None,
    type=click.FloatRange(min=0, min_open=True),
    help='Stop live recording after this many seconds (default: until Ctrl+C).',
)
@click.version_option(version=__version__)
def cli(config_path, output_dir, label, audio_file, duration):
    """live-scribe -- record audio with a rolling speech-to-text transcript."""
    from live_scribe.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from live_scribe.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        InfraConfig,
        build_app_config,
    )

    try:
        overrides: dict = {}
        if output_dir:
            overrides['output'] = {'directory': output_dir}
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides if overrides else None)
        config = build_app_config(raw)
        infra = InfraConfig.model_validate(raw)
    except (FileNotFoundError, ValueError) as e:
        _err(f'Error: {e}')
        sys.exit(1)

    base_dir = Path(output_dir or config.output.directory)
    out_dir = _make_session_dir(base_dir, label)

    from live_scribe.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: audio/model stack not loaded on --help
        DependencyContainer,
    )
    from live_scribe.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_file_logging,
    )

    setup_file_logging(out_dir)
    reporter = _Reporter()
    container = DependencyContainer(
        config,
        out_dir,
        infra=infra,
        on_download_progress=reporter.download,
        on_transcript_updated=reporter.transcript,
        on_segment_error=reporter.segment_error,
        on_progress=reporter.progress,
        on_status=reporter.status,
    )

    try:
        if audio_file:
            transcript = _run_file(container, Path(audio_file))
        else:
            _preflight_microphone()
            transcript = _run_microphone(container, duration)
    finally:
        container.close()

    (out_dir / 'transcript.txt').write_text(transcript, encoding='utf-8')
    _err(f'\nSaved:\n  Session:    {out_dir}\n')
    click.echo(transcript)


def _run_file(container, audio_path: Path) -> str:
    from live_scribe.l1_entities.errors import DecodeError, ModelLoadError  # noqa: PLC0415 -- deferred with the rest of the stack
    from live_scribe.l4_frameworks_and_drivers.batch_runner import (  # noqa: PLC0415 -- deferred: batch mode only
        run_batch,
    )

    try:
        return run_batch(audio_path, container.controller)
    except (FileNotFoundError, DecodeError, ModelLoadError) as exc:
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc


def _run_microphone(container, duration: float | None) -> str:
    from live_scribe.l1_entities.errors import AudioDeviceError  # noqa: PLC0415 -- deferred with the rest of the stack
    from live_scribe.l4_frameworks_and_drivers.live_runner import (  # noqa: PLC0415 -- deferred: live mode only
        run_live,
    )

    if duration is None:
        _err('Recording... press Ctrl+C to stop.')
    try:
        return run_live(container.controller, duration)
    except AudioDeviceError as exc:
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc


def _preflight_microphone() -> None:
    try:
        import sounddevice as sd  # noqa: PLC0415 -- deferred: not loaded on --help

        devices = sd.query_devices()
        input_devices = [d for d in devices if d['max_input_channels'] > 0]
        if not input_devices:
            _err('Warning: No input audio devices found.')
    except Exception as e:
        _err(f'Warning: Cannot query audio devices ({e}).')
