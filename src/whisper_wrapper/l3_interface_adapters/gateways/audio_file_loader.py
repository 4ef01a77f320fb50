"""Gateway: audio file reader — decodes any format via an ffmpeg subprocess."""

from __future__ import annotations

import logging
import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
from pathlib import Path

import numpy as np

from whisper_wrapper.l1_entities.audio_constants import SAMPLE_RATE

log = logging.getLogger('ww.audio')

_FFMPEG_TIMEOUT = 300  # seconds


def _ffmpeg_command(path: Path, sample_rate: int) -> list[str]:
    return [
        'ffmpeg',
        '-nostdin',
        '-i',
        str(path),
        '-ar',
        str(sample_rate),
        '-ac',
        '1',
        '-f',
        'f32le',
        '-v',
        'error',
        'pipe:1',
    ]


def load_audio_file(path: Path, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Decode *path* into float32 mono PCM at *sample_rate* (16 kHz for whisper).

    Raises:
        FileNotFoundError: audio file does not exist.
        RuntimeError: ffmpeg could not decode the file to samples.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f'Audio file not found: {path}')

    if shutil.which('ffmpeg') is None:
        raise RuntimeError(
            'ffmpeg is required but not found on PATH.\n  macOS:  brew install ffmpeg\n  Debian: apt install ffmpeg'
        )

    try:
        result = subprocess.run(  # noqa: S603
            _ffmpeg_command(path, sample_rate), capture_output=True, timeout=_FFMPEG_TIMEOUT
        )
    except subprocess.TimeoutExpired as exc:
        raise RuntimeError(f'ffmpeg timed out after {_FFMPEG_TIMEOUT}s decoding: {path}') from exc
    except OSError as exc:
        raise RuntimeError(f'Failed to launch ffmpeg: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise RuntimeError(f'ffmpeg exited with code {result.returncode} for: {path}\n{stderr}')

    # f32le frames are 4 bytes; a truncated tail is dropped
    usable = len(result.stdout) - len(result.stdout) % 4
    samples = np.frombuffer(result.stdout[:usable], dtype=np.float32)
    if samples.size == 0:
        raise RuntimeError(f'ffmpeg produced no audio output for: {path}')

    log.debug('Decoded %s: %d samples @ %d Hz', path, samples.size, sample_rate)
    return samples
