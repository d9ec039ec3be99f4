"""Batch runner — headless transcribe-from-file. Blocks until done."""

from __future__ import annotations

import asyncio
from pathlib import Path

from live_scribe.l3_interface_adapters.controllers.session_controller import SessionController


def run_batch(audio_path: Path, controller: SessionController) -> str:
    """Transcribe *audio_path* in fixed windows and return the transcript.

    Raises FileNotFoundError, DecodeError or ModelLoadError; per-window
    failures are reported through the controller's listeners instead.
    """
    asyncio.run(controller.transcribe_file(audio_path))
    return controller.get_transcript()
