"""Gateway: whisper.cpp engine via the pywhispercpp native extension — implements WhisperEngine port."""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from types import ModuleType
from typing import Any

import numpy as np

from whisper_wrapper.l1_entities.params import FullParams
from whisper_wrapper.l2_use_cases.ports.engine import TokenData
from whisper_wrapper.l3_interface_adapters.gateways.binding_loader import load_binding

log = logging.getLogger('ww.engine')

# Fields copied verbatim onto the native whisper_full_params record.
_SCALAR_FIELDS = (
    'n_threads',
    'n_max_text_ctx',
    'offset_ms',
    'duration_ms',
    'translate',
    'no_context',
    'no_timestamps',
    'single_segment',
    'print_special',
    'print_progress',
    'print_realtime',
    'print_timestamps',
    'token_timestamps',
    'thold_pt',
    'thold_ptsum',
    'max_len',
    'split_on_word',
    'max_tokens',
    'debug_mode',
    'audio_ctx',
    'tdrz_enable',
    'detect_language',
    'suppress_blank',
    'temperature',
    'max_initial_ts',
    'length_penalty',
    'temperature_inc',
    'entropy_thold',
    'logprob_thold',
    'no_speech_thold',
)

_redirect_lock = threading.Lock()
_redirect_depth = 0
_saved_fds: tuple[int, int] | None = None


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout. Nested and concurrent entries share one
    redirect; the last one out restores the original descriptors.
    """
    global _redirect_depth, _saved_fds  # noqa: PLW0603 -- process-wide fd state
    with _redirect_lock:
        if _redirect_depth == 0:
            devnull = os.open(os.devnull, os.O_WRONLY)
            _saved_fds = (os.dup(1), os.dup(2))
            os.dup2(devnull, 1)
            os.dup2(devnull, 2)
            os.close(devnull)
        _redirect_depth += 1
    try:
        yield
    finally:
        with _redirect_lock:
            _redirect_depth -= 1
            if _redirect_depth == 0 and _saved_fds is not None:
                old_stdout, old_stderr = _saved_fds
                os.dup2(old_stdout, 1)
                os.dup2(old_stderr, 2)
                os.close(old_stdout)
                os.close(old_stderr)
                _saved_fds = None


def _as_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return str(value)


class WhisperCppEngine:
    """pywhispercpp adapter. Handles parameter marshalling and C stdout suppression.

    Stateless apart from the binding module: every call takes the context
    it operates on, so one engine can serve any number of handles.
    """

    def __init__(self, binding: ModuleType | None = None, quiet: bool = True) -> None:
        self._pw = binding if binding is not None else load_binding()
        self._quiet = quiet

    def _quiet_scope(self):
        return _suppress_c_stdout() if self._quiet else contextlib.nullcontext()

    def init_from_file(self, model_path: str, *, use_gpu: bool, flash_attn: bool) -> Any | None:
        if not os.path.isfile(model_path):
            log.error('Model file not found: %s', model_path)
            return None

        pw = self._pw
        with self._quiet_scope():
            init_with_params = getattr(pw, 'whisper_init_from_file_with_params', None)
            if init_with_params is not None:
                cparams = pw.whisper_context_default_params()
                cparams.use_gpu = use_gpu
                cparams.flash_attn = flash_attn
                return init_with_params(model_path, cparams)

            if not use_gpu or flash_attn:
                log.warning('Binding has no context params; use_gpu=%s flash_attn=%s not applied', use_gpu, flash_attn)
            return pw.whisper_init_from_file(model_path)

    def free(self, ctx: Any) -> None:
        with self._quiet_scope():
            self._pw.whisper_free(ctx)

    def to_native_params(self, params: FullParams) -> Any:
        """Build a native ``whisper_full_params`` from *params*."""
        pw = self._pw
        strategy = (
            pw.whisper_sampling_strategy.WHISPER_SAMPLING_BEAM_SEARCH
            if params.strategy
            else pw.whisper_sampling_strategy.WHISPER_SAMPLING_GREEDY
        )
        native = pw.whisper_full_default_params(strategy)

        for name in _SCALAR_FIELDS:
            if hasattr(native, name):
                setattr(native, name, getattr(params, name))
            else:
                log.debug('Binding has no %s field; keeping engine default', name)

        nst_field = 'suppress_nst' if hasattr(native, 'suppress_nst') else 'suppress_non_speech_tokens'
        setattr(native, nst_field, params.suppress_nst)

        native.language = params.language
        if params.initial_prompt:
            native.initial_prompt = params.initial_prompt

        native.greedy = {'best_of': params.greedy.best_of}
        native.beam_search = {'beam_size': params.beam_search.beam_size, 'patience': params.beam_search.patience}
        return native

    def full_parallel(self, ctx: Any, params: FullParams, samples: np.ndarray, n_processors: int) -> int:
        native = self.to_native_params(params)
        with self._quiet_scope():
            return int(self._pw.whisper_full_parallel(ctx, native, samples, samples.size, n_processors))

    def n_segments(self, ctx: Any) -> int:
        return int(self._pw.whisper_full_n_segments(ctx))

    def segment_t0(self, ctx: Any, i_segment: int) -> int:
        return int(self._pw.whisper_full_get_segment_t0(ctx, i_segment))

    def segment_t1(self, ctx: Any, i_segment: int) -> int:
        return int(self._pw.whisper_full_get_segment_t1(ctx, i_segment))

    def segment_text(self, ctx: Any, i_segment: int) -> str:
        return _as_text(self._pw.whisper_full_get_segment_text(ctx, i_segment))

    def n_tokens(self, ctx: Any, i_segment: int) -> int:
        return int(self._pw.whisper_full_n_tokens(ctx, i_segment))

    def token_text(self, ctx: Any, i_segment: int, i_token: int) -> str:
        return _as_text(self._pw.whisper_full_get_token_text(ctx, i_segment, i_token))

    def token_data(self, ctx: Any, i_segment: int, i_token: int) -> TokenData:
        data = self._pw.whisper_full_get_token_data(ctx, i_segment, i_token)
        return TokenData(id=int(data.id), p=float(data.p), t0=int(data.t0), t1=int(data.t1))

    def token_eot(self, ctx: Any) -> int:
        return int(self._pw.whisper_token_eot(ctx))

    def full_lang_id(self, ctx: Any) -> int:
        return int(self._pw.whisper_full_lang_id(ctx))

    def lang_str(self, lang_id: int) -> str:
        return _as_text(self._pw.whisper_lang_str(lang_id))
