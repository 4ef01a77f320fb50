"""Caller-facing option schemas: every recognized key with its type.

Unknown keys are ignored. A key that is present with the wrong type is a
caller error; a loosely typed string key holding a non-string is treated
as absent.
"""

from __future__ import annotations

import math
import numbers
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from whisper_wrapper.l1_entities.params import SamplingStrategy

_INT_KEYS = (
    'n_threads',
    'n_max_text_ctx',
    'offset_ms',
    'duration_ms',
    'max_len',
    'max_tokens',
    'audio_ctx',
    'best_of',
    'beam_size',
    'n_processors',
)

_FLOAT_KEYS = (
    'thold_pt',
    'thold_ptsum',
    'temperature',
    'max_initial_ts',
    'length_penalty',
    'temperature_inc',
    'entropy_thold',
    'logprob_thold',
    'no_speech_thold',
)

_LOOSE_STR_KEYS = ('language', 'initial_prompt', 'prompt', 'format', 'fname_inp')


def _loose_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class InitOptions(BaseModel):
    """Options accepted by ``init``."""

    model_config = ConfigDict(extra='ignore', strict=True, frozen=True, protected_namespaces=())

    model: str | None = None
    gpu: bool | None = None
    use_gpu: bool | None = None
    flash_attn: bool = False

    @field_validator('model', mode='before')
    @classmethod
    def _model_must_be_str(cls, value: Any) -> str | None:
        return _loose_str(value)

    @property
    def resolved_use_gpu(self) -> bool:
        """``gpu`` wins over ``use_gpu``; GPU is on unless either says otherwise."""
        if self.gpu is not None:
            return self.gpu
        if self.use_gpu is not None:
            return self.use_gpu
        return True


class FullOptions(BaseModel):
    """Run configuration accepted by ``full``. ``None`` means "keep the engine default"."""

    model_config = ConfigDict(extra='ignore', strict=True, frozen=True)

    strategy: SamplingStrategy | None = None
    n_threads: int | None = None
    n_max_text_ctx: int | None = None
    offset_ms: int | None = None
    duration_ms: int | None = None

    translate: bool | None = None
    no_context: bool | None = None
    no_timestamps: bool | None = None
    single_segment: bool | None = None
    print_special: bool | None = None
    print_progress: bool | None = None
    print_realtime: bool | None = None
    print_timestamps: bool | None = None

    token_timestamps: bool | None = None
    thold_pt: float | None = None
    thold_ptsum: float | None = None
    max_len: int | None = None
    split_on_word: bool | None = None
    max_tokens: int | None = None

    debug_mode: bool | None = None
    audio_ctx: int | None = None

    tdrz_enable: bool | None = None

    initial_prompt: str | None = None
    language: str | None = None

    suppress_blank: bool | None = None
    suppress_non_speech_tokens: bool | None = None

    temperature: float | None = None
    max_initial_ts: float | None = None
    length_penalty: float | None = None

    temperature_inc: float | None = None
    entropy_thold: float | None = None
    logprob_thold: float | None = None
    no_speech_thold: float | None = None

    best_of: int | None = None
    beam_size: int | None = None

    prompt: str | None = None
    format: str | None = None
    detect_language: bool | None = None

    fname_inp: str | None = None
    n_processors: int | None = None

    @field_validator(*_INT_KEYS, mode='before')
    @classmethod
    def _truncate_numbers(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, (bool, np.bool_)):
            raise ValueError(f'{info.field_name} must be a number, not a boolean')
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, numbers.Real):
            if not math.isfinite(value):
                raise ValueError(f'{info.field_name} must be finite')
            return int(value)
        return value

    @field_validator(*_FLOAT_KEYS, mode='before')
    @classmethod
    def _reject_bool_numbers(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, (bool, np.bool_)):
            raise ValueError(f'{info.field_name} must be a number, not a boolean')
        if isinstance(value, numbers.Real):
            return float(value)
        return value

    @field_validator(*_LOOSE_STR_KEYS, mode='before')
    @classmethod
    def _drop_non_strings(cls, value: Any) -> str | None:
        return _loose_str(value)

    @field_validator('strategy', mode='before')
    @classmethod
    def _parse_strategy(cls, value: Any) -> Any:
        if value is None or isinstance(value, SamplingStrategy):
            return value
        if isinstance(value, str):
            try:
                return SamplingStrategy[value.strip().upper()]
            except KeyError:
                raise ValueError(f'unknown sampling strategy: {value!r}') from None
        if isinstance(value, (bool, np.bool_)):
            raise ValueError('strategy must be a number or a strategy name')
        if isinstance(value, numbers.Real):
            if not math.isfinite(value):
                raise ValueError('strategy must be finite')
            return SamplingStrategy(int(value))
        return value
