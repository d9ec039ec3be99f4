"""Gateway: HuggingFace model resolver — implements ModelResolver port."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from huggingface_hub import hf_hub_download
from pywhispercpp.constants import MODELS_DIR

from live_scribe.l1_entities.errors import ModelResolutionError

log = logging.getLogger('scribe.models')

WHISPER_CPP_REPO = 'ggerganov/whisper.cpp'
WHISPER_CPP_MODELS = {
    'tiny.en': 'ggml-tiny.en.bin',
    'tiny.en-q8_0': 'ggml-tiny.en-q8_0.bin',
    'tiny': 'ggml-tiny.bin',
    'base.en': 'ggml-base.en.bin',
    'base.en-q8_0': 'ggml-base.en-q8_0.bin',
    'base': 'ggml-base.bin',
    'small.en': 'ggml-small.en.bin',
    'small.en-q8_0': 'ggml-small.en-q8_0.bin',
    'small-q8_0': 'ggml-small-q8_0.bin',
    'medium.en-q8_0': 'ggml-medium.en-q8_0.bin',
    'medium-q8_0': 'ggml-medium-q8_0.bin',
    'large-v3-turbo-q8_0': 'ggml-large-v3-turbo-q8_0.bin',
    'large-v3-turbo': 'ggml-large-v3-turbo.bin',
}


class _PercentProgress:
    """Minimal tqdm stand-in: turns byte counts into whole-percent callbacks."""

    _callback: Callable[[int], None] = staticmethod(lambda percent: None)

    def __init__(self, *args, total: int | None = None, initial: int = 0, **kwargs) -> None:
        self.total = total or 0
        self.n = initial or 0
        self._reported: int | None = None
        self._report()

    def _report(self) -> None:
        if self.total <= 0:
            return
        percent = min(self.n * 100 // self.total, 100)
        if percent != self._reported:
            self._reported = percent
            type(self)._callback(percent)

    def update(self, n: int = 1) -> None:
        self.n += n
        self._report()

    def _noop(self, *args, **kwargs) -> None:
        return None

    close = refresh = set_description = set_description_str = set_postfix = _noop

    def __enter__(self) -> _PercentProgress:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _make_progress_class(callback: Callable[[int], None]) -> type[_PercentProgress]:
    """Bind *callback* into a tqdm-compatible class for ``hf_hub_download``."""
    return type('_BoundPercentProgress', (_PercentProgress,), {'_callback': staticmethod(callback)})


def _cache_dir() -> Path:
    path = Path(MODELS_DIR) / 'whisper-cpp'
    path.mkdir(parents=True, exist_ok=True)
    return path


class HfModelResolver:
    """Maps whisper.cpp model names to local ggml files.

    Absolute paths must exist and are returned untouched. Known names are
    served from the pywhispercpp model cache, downloading from the
    whisper.cpp HuggingFace repo on a miss. Any other name passes through so
    pywhispercpp can apply its own lookup.
    """

    def __init__(self, on_progress: Callable[[int], None] | None = None) -> None:
        self._on_progress = on_progress

    def resolve(self, model_name: str) -> str:
        if Path(model_name).is_absolute():
            if Path(model_name).exists():
                return model_name
            raise ModelResolutionError(f'Model file not found: {model_name}')

        filename = WHISPER_CPP_MODELS.get(model_name)
        if filename is None:
            return model_name

        cached = _cache_dir() / filename
        if cached.exists():
            log.debug('Model %s found in cache: %s', model_name, cached)
            return str(cached)

        extra: dict = {}
        if self._on_progress is not None:
            extra['tqdm_class'] = _make_progress_class(self._on_progress)
        log.info('Downloading %s from %s', filename, WHISPER_CPP_REPO)
        try:
            return hf_hub_download(repo_id=WHISPER_CPP_REPO, filename=filename, local_dir=cached.parent, **extra)
        except Exception as exc:
            raise ModelResolutionError(f'Failed to download {model_name}: {exc}') from exc
