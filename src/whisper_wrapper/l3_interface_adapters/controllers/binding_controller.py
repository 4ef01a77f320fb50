"""Controller: host-facing ``init`` / ``full`` / ``free`` boundary.

Argument shape is strict (``options`` must be a mapping, ``handle`` must be
a handle) while individual option fields are loosely optional and default.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from whisper_wrapper.l1_entities.errors import InvalidArgumentError
from whisper_wrapper.l1_entities.options import InitOptions
from whisper_wrapper.l2_use_cases import handle_manager, transcription_driver
from whisper_wrapper.l2_use_cases.handle_manager import WhisperHandle
from whisper_wrapper.l2_use_cases.ports.audio_reader import AudioReader
from whisper_wrapper.l2_use_cases.ports.engine import WhisperEngine

log = logging.getLogger('ww.controller')

_engine_lock = threading.Lock()
_default_engine: WhisperEngine | None = None


def get_default_engine() -> WhisperEngine:
    """Build the pywhispercpp-backed engine on first use."""
    global _default_engine  # noqa: PLW0603 -- lazily built process-wide engine
    with _engine_lock:
        if _default_engine is None:
            from whisper_wrapper.l3_interface_adapters.gateways.whispercpp_engine import (  # noqa: PLC0415 -- deferred: native binding loaded on first init
                WhisperCppEngine,
            )

            _default_engine = WhisperCppEngine()
        return _default_engine


def _default_audio_reader() -> AudioReader:
    from whisper_wrapper.l3_interface_adapters.gateways.audio_file_loader import (  # noqa: PLC0415 -- deferred: only needed for fname_inp
        load_audio_file,
    )

    return load_audio_file


def init(options: Mapping[str, Any], *, engine: WhisperEngine | None = None) -> WhisperHandle:
    """Load a model. ``options``: ``model`` (required), ``gpu``/``use_gpu``, ``flash_attn``."""
    if not isinstance(options, Mapping):
        raise InvalidArgumentError('Expected init options object')
    try:
        opts = InitOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise InvalidArgumentError(f'Invalid init options: {exc}') from exc
    if opts.model is None:
        raise InvalidArgumentError("Missing 'model' path")

    return handle_manager.initialize(
        engine if engine is not None else get_default_engine(),
        opts.model,
        use_gpu=opts.resolved_use_gpu,
        flash_attn=opts.flash_attn,
    )


def full(
    handle: WhisperHandle,
    options: Mapping[str, Any],
    *,
    audio_reader: AudioReader | None = None,
) -> list[dict]:
    """Transcribe with *handle*; returns host-shaped segment dicts in decode order."""
    segments = transcription_driver.run(
        handle,
        options,
        audio_reader if audio_reader is not None else _default_audio_reader(),
    )
    return [segment.to_dict() for segment in segments]


def free(handle: WhisperHandle) -> None:
    """Release *handle*. Idempotent."""
    if handle_manager.release(handle):
        log.debug('Freed %r', handle)
