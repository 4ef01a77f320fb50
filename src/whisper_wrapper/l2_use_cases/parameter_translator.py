"""Use case: translate caller options into the engine's parameter record."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from whisper_wrapper.l1_entities.errors import InvalidArgumentError
from whisper_wrapper.l1_entities.options import FullOptions
from whisper_wrapper.l1_entities.params import FullParams, SamplingStrategy

AUTO_LANGUAGE = 'auto'
DETAIL_FORMAT = 'detail'

# Keys copied 1:1 from FullOptions onto FullParams, in engine field order.
_DIRECT_FIELDS = (
    'n_threads',
    'n_max_text_ctx',
    'offset_ms',
    'duration_ms',
    'translate',
    'no_context',
    'no_timestamps',
    'single_segment',
    'print_special',
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
    'suppress_blank',
    'temperature',
    'max_initial_ts',
    'length_penalty',
    'temperature_inc',
    'entropy_thold',
    'logprob_thold',
    'no_speech_thold',
    'detect_language',
)


@dataclass
class FullParamConfig:
    """Parameters for one decode call plus the strings they point at.

    ``language`` and ``initial_prompt`` are owned here, not by the handle,
    and are bound onto ``params`` right before the engine call.
    """

    params: FullParams = field(default_factory=FullParams.default)
    language: str = AUTO_LANGUAGE
    initial_prompt: str = ''
    detailed: bool = False
    token_timestamps: bool = False
    n_processors: int = 1

    def bind_strings(self) -> FullParams:
        """Re-normalize the language and attach both strings to ``params``."""
        self.language = normalize_language(self.language)
        self.params.language = self.language
        self.params.initial_prompt = self.initial_prompt or None
        return self.params


def normalize_language(language: Any) -> str:
    """Return *language* unless it is missing, not a string, or empty."""
    if not isinstance(language, str) or not language:
        return AUTO_LANGUAGE
    return language


def validate_full_options(options: Mapping[str, Any]) -> FullOptions:
    try:
        return FullOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise InvalidArgumentError(f'Invalid transcription options: {exc}') from exc


def parse_full_params(options: Mapping[str, Any] | FullOptions) -> FullParamConfig:
    """Build a fully defaulted :class:`FullParamConfig` from caller options.

    Absent keys keep the engine default, except ``print_progress`` which
    defaults to off. ``beam_size > 1`` forces beam search after ``strategy``
    is applied. ``initial_prompt`` wins over ``prompt``.
    """
    opts = options if isinstance(options, FullOptions) else validate_full_options(options)

    cfg = FullParamConfig(params=FullParams.default(SamplingStrategy.GREEDY))
    params = cfg.params

    if opts.strategy is not None:
        params.strategy = opts.strategy

    for name in _DIRECT_FIELDS:
        value = getattr(opts, name)
        if value is not None:
            setattr(params, name, value)

    params.print_progress = opts.print_progress if opts.print_progress is not None else False
    cfg.token_timestamps = params.token_timestamps

    if opts.suppress_non_speech_tokens is not None:
        params.suppress_nst = opts.suppress_non_speech_tokens

    if opts.initial_prompt is not None:
        cfg.initial_prompt = opts.initial_prompt
    cfg.language = normalize_language(opts.language)

    if opts.best_of is not None:
        params.greedy.best_of = opts.best_of
    if opts.beam_size is not None:
        params.beam_search.beam_size = opts.beam_size
        if opts.beam_size > 1:
            params.strategy = SamplingStrategy.BEAM_SEARCH

    if opts.prompt is not None and not cfg.initial_prompt:
        cfg.initial_prompt = opts.prompt

    if opts.format is not None:
        cfg.detailed = opts.format.lower() == DETAIL_FORMAT

    if opts.n_processors is not None:
        cfg.n_processors = max(1, opts.n_processors)

    cfg.language = normalize_language(cfg.language)
    return cfg
