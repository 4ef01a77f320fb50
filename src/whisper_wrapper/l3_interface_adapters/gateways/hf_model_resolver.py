"""Gateway: model resolver — local paths, the default local model, or a whisper.cpp download."""

from __future__ import annotations

import logging
from pathlib import Path

from huggingface_hub import hf_hub_download
from pywhispercpp.constants import MODELS_DIR

from whisper_wrapper.l1_entities.errors import ModelResolutionError

log = logging.getLogger('ww.models')

WHISPER_CPP_REPO = 'ggerganov/whisper.cpp'
WHISPER_CPP_MODELS = {
    'tiny': 'ggml-tiny.bin',
    'tiny.en': 'ggml-tiny.en.bin',
    'base': 'ggml-base.bin',
    'base.en': 'ggml-base.en.bin',
    'small': 'ggml-small.bin',
    'small.en': 'ggml-small.en.bin',
    'small-q8_0': 'ggml-small-q8_0.bin',
    'medium': 'ggml-medium.bin',
    'medium-q8_0': 'ggml-medium-q8_0.bin',
    'large-v3': 'ggml-large-v3.bin',
    'large-v3-turbo': 'ggml-large-v3-turbo.bin',
    'large-v3-turbo-q8_0': 'ggml-large-v3-turbo-q8_0.bin',
}


def default_model_path(models_dir: Path | None = None) -> str:
    """Pick the largest ``*.bin`` model in *models_dir* (pywhispercpp's cache by default)."""
    directory = Path(models_dir) if models_dir is not None else Path(MODELS_DIR)
    if not directory.is_dir():
        raise ModelResolutionError(f'Model directory not found at {directory}. Pass --model to override.')

    candidates = sorted(
        (p for p in directory.rglob('*.bin') if p.is_file()),
        key=lambda p: p.stat().st_size,
        reverse=True,
    )
    if not candidates:
        raise ModelResolutionError(f'No .bin model files found in {directory}. Pass --model to override.')
    return str(candidates[0])


class HfModelResolver:
    """Resolves a model argument to a local file, downloading known whisper.cpp models."""

    def __init__(self, models_dir: Path | None = None) -> None:
        self._models_dir = Path(models_dir) if models_dir is not None else Path(MODELS_DIR)

    def resolve(self, model: str | None) -> str:
        if not model:
            return default_model_path(self._models_dir)

        path = Path(model).expanduser()
        if path.is_file():
            return str(path.resolve())

        if model in WHISPER_CPP_MODELS:
            return self._download(model)

        raise ModelResolutionError(f'Model file not found: {model}')

    def _download(self, name: str) -> str:
        filename = WHISPER_CPP_MODELS[name]
        cache_dir = self._models_dir / 'whisper-cpp'
        local_path = cache_dir / filename
        if local_path.exists():
            return str(local_path)
        cache_dir.mkdir(parents=True, exist_ok=True)
        log.info('Downloading %s from %s', filename, WHISPER_CPP_REPO)
        return hf_hub_download(repo_id=WHISPER_CPP_REPO, filename=filename, local_dir=cache_dir)
