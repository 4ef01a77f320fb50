"""Port: whisper.cpp engine primitives.

The engine is a black box: a model loader, a (parallel) decode entry point,
and the read-only accessors that expose decoded segment/token state.
Contexts are opaque; only the Handle Manager holds one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from whisper_wrapper.l1_entities.params import FullParams


@dataclass(frozen=True)
class TokenData:
    """Per-token decode data. ``t0``/``t1`` are centisecond ticks."""

    id: int
    p: float
    t0: int = 0
    t1: int = 0


class WhisperEngine(Protocol):
    """Abstract whisper.cpp engine. Zero framework types leak through."""

    def init_from_file(self, model_path: str, *, use_gpu: bool, flash_attn: bool) -> Any | None:
        """Load a model; returns an opaque context or ``None`` on failure."""
        ...

    def free(self, ctx: Any) -> None:
        """Release a context returned by :meth:`init_from_file`."""
        ...

    def full_parallel(self, ctx: Any, params: FullParams, samples: np.ndarray, n_processors: int) -> int:
        """Run the decoding pass. Returns the engine status code (0 on success)."""
        ...

    def n_segments(self, ctx: Any) -> int: ...

    def segment_t0(self, ctx: Any, i_segment: int) -> int: ...

    def segment_t1(self, ctx: Any, i_segment: int) -> int: ...

    def segment_text(self, ctx: Any, i_segment: int) -> str: ...

    def n_tokens(self, ctx: Any, i_segment: int) -> int: ...

    def token_text(self, ctx: Any, i_segment: int, i_token: int) -> str: ...

    def token_data(self, ctx: Any, i_segment: int, i_token: int) -> TokenData: ...

    def token_eot(self, ctx: Any) -> int:
        """Id of the end-of-text token; ids above it are special tokens."""
        ...

    def full_lang_id(self, ctx: Any) -> int:
        """Language id detected (or forced) by the last decode."""
        ...

    def lang_str(self, lang_id: int) -> str: ...
