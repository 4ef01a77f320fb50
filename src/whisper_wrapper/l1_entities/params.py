"""Engine parameter record mirroring whisper.cpp's ``whisper_full_params``."""

from __future__ import annotations

import enum
import os

from pydantic import BaseModel, Field


class SamplingStrategy(enum.IntEnum):
    GREEDY = 0
    BEAM_SEARCH = 1


def _default_n_threads() -> int:
    return min(4, os.cpu_count() or 1)


class GreedyParams(BaseModel):
    best_of: int = -1


class BeamSearchParams(BaseModel):
    beam_size: int = -1
    patience: float = -1.0


class FullParams(BaseModel):
    """Strongly typed decoding parameters handed to the engine.

    Field defaults are the engine's built-in defaults; use :meth:`default`
    to get the strategy-specific record the engine itself would produce.
    """

    strategy: SamplingStrategy = SamplingStrategy.GREEDY

    n_threads: int = Field(default_factory=_default_n_threads)
    n_max_text_ctx: int = 16384
    offset_ms: int = 0
    duration_ms: int = 0

    translate: bool = False
    no_context: bool = True
    no_timestamps: bool = False
    single_segment: bool = False
    print_special: bool = False
    print_progress: bool = True
    print_realtime: bool = False
    print_timestamps: bool = True

    token_timestamps: bool = False
    thold_pt: float = 0.01
    thold_ptsum: float = 0.01
    max_len: int = 0
    split_on_word: bool = False
    max_tokens: int = 0

    debug_mode: bool = False
    audio_ctx: int = 0

    tdrz_enable: bool = False

    initial_prompt: str | None = None
    language: str = 'en'
    detect_language: bool = False

    suppress_blank: bool = True
    suppress_nst: bool = False

    temperature: float = 0.0
    max_initial_ts: float = 1.0
    length_penalty: float = -1.0

    temperature_inc: float = 0.2
    entropy_thold: float = 2.4
    logprob_thold: float = -1.0
    no_speech_thold: float = 0.6

    greedy: GreedyParams = Field(default_factory=GreedyParams)
    beam_search: BeamSearchParams = Field(default_factory=BeamSearchParams)

    @classmethod
    def default(cls, strategy: SamplingStrategy = SamplingStrategy.GREEDY) -> FullParams:
        """Build the record ``whisper_full_default_params(strategy)`` would return."""
        params = cls(strategy=strategy)
        if strategy == SamplingStrategy.GREEDY:
            params.greedy.best_of = 5
        else:
            params.beam_search.beam_size = 5
        return params
