"""Use case: validate input, decode under the handle lock, build segments."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import numpy as np

from whisper_wrapper.l1_entities.errors import (
    AudioReadError,
    DecodeError,
    HandleFreedError,
    InvalidArgumentError,
    NoAudioError,
)
from whisper_wrapper.l1_entities.transcript import Segment
from whisper_wrapper.l2_use_cases.handle_manager import WhisperHandle
from whisper_wrapper.l2_use_cases.parameter_translator import parse_full_params, validate_full_options
from whisper_wrapper.l2_use_cases.ports.audio_reader import AudioReader
from whisper_wrapper.l2_use_cases.result_builder import build_segments

log = logging.getLogger('ww.driver')


def extract_audio(options: Mapping[str, Any]) -> np.ndarray:
    """Return the ``audio`` buffer as contiguous mono float32, or an empty array when absent.

    Accepts a 1-D floating-point numpy array or sequence of floats. ``None``,
    ``str`` and ``bytes`` count as absent.

    Raises:
        InvalidArgumentError: the buffer is not 1-D or not floating-point PCM.
    """
    value = options.get('audio')
    if value is None or isinstance(value, (str, bytes)):
        return np.array([], dtype=np.float32)
    try:
        samples = np.asarray(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f'Invalid audio buffer: {exc}') from exc
    if samples.size == 0 and samples.ndim == 1:
        return np.array([], dtype=np.float32)
    if samples.ndim != 1:
        raise InvalidArgumentError(f'Audio buffer must be 1-D mono samples, got shape {samples.shape}')
    if not np.issubdtype(samples.dtype, np.floating):
        raise InvalidArgumentError(f'Audio buffer must hold floating-point samples in [-1, 1], got {samples.dtype}')
    return np.ascontiguousarray(samples, dtype=np.float32)


def resolve_samples(options: Mapping[str, Any], fname_inp: str | None, audio_reader: AudioReader) -> np.ndarray:
    """In-memory buffer first, then ``fname_inp``.

    Raises:
        NoAudioError: neither source yields a buffer to decode.
        AudioReadError: the input file could not be read or decoded to nothing.
    """
    samples = extract_audio(options)
    if samples.size:
        return samples

    if not fname_inp:
        raise NoAudioError('No audio provided (audio buffer or fname_inp required)')

    try:
        samples = audio_reader(Path(fname_inp))
    except (OSError, RuntimeError) as exc:
        raise AudioReadError(f'Failed to read input audio file: {exc}') from exc
    if samples is None or len(samples) == 0:
        raise AudioReadError(f'Failed to read input audio file: {fname_inp} contains no samples')
    return np.ascontiguousarray(samples, dtype=np.float32)


def run(
    handle: WhisperHandle,
    options: Mapping[str, Any],
    audio_reader: AudioReader,
) -> list[Segment]:
    """Transcribe one audio input with *handle*.

    Decodes on the same handle are serialized by its lock; different handles
    never contend. No retries: every failure raises before any result is built.
    """
    if not isinstance(options, Mapping):
        raise InvalidArgumentError('Expected arguments (handle, options)')
    if not isinstance(handle, WhisperHandle):
        raise InvalidArgumentError('Invalid context handle')
    if handle.freed:
        raise HandleFreedError('Model has been freed')

    opts = validate_full_options(options)
    samples = resolve_samples(options, opts.fname_inp, audio_reader)
    cfg = parse_full_params(opts)
    params = cfg.bind_strings()

    engine = handle.engine
    with handle.acquire() as ctx:
        log.debug(
            'Decoding %d samples (language=%s, strategy=%s, n_processors=%d)',
            samples.size,
            cfg.language,
            params.strategy.name,
            cfg.n_processors,
        )
        started = time.monotonic()
        status = engine.full_parallel(ctx, params, samples, cfg.n_processors)
        if status != 0:
            raise DecodeError(f'whisper_full_parallel failed (status {status})')
        segments = build_segments(engine, ctx, cfg)

    log.info('Decoded %d segments in %.2fs', len(segments), time.monotonic() - started)
    return segments
