"""Use case: project decoded engine state into nested Segment/Token entities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from whisper_wrapper.l1_entities.transcript import Segment, Token, ticks_to_ms
from whisper_wrapper.l2_use_cases.parameter_translator import FullParamConfig
from whisper_wrapper.l2_use_cases.ports.engine import WhisperEngine


def segment_confidence(probabilities: Sequence[float]) -> float:
    """Trimmed mean of token probabilities.

    More than two values: drop one minimum and one maximum. One or two
    values: plain mean. None: 0.0.
    """
    count = len(probabilities)
    if count > 2:
        return (sum(probabilities) - min(probabilities) - max(probabilities)) / (count - 2)
    if count > 0:
        return sum(probabilities) / count
    return 0.0


def build_segments(engine: WhisperEngine, ctx: Any, cfg: FullParamConfig) -> list[Segment]:
    """Read every segment (and, in detail mode, every token) from *ctx*.

    Pure read projection of the last decode; the caller must hold the
    handle lock.
    """
    n_segments = engine.n_segments(ctx)
    detected_language = engine.lang_str(engine.full_lang_id(ctx)) if cfg.detailed else None
    eot = engine.token_eot(ctx) if cfg.detailed else None

    segments: list[Segment] = []
    for i in range(n_segments):
        segment = Segment(
            from_ms=ticks_to_ms(engine.segment_t0(ctx, i)),
            to_ms=ticks_to_ms(engine.segment_t1(ctx, i)),
            text=engine.segment_text(ctx, i),
        )

        if cfg.detailed:
            tokens: list[Token] = []
            probabilities: list[float] = []
            for j in range(engine.n_tokens(ctx, i)):
                data = engine.token_data(ctx, i, j)
                token = Token(text=engine.token_text(ctx, i, j), id=data.id, p=data.p)
                if cfg.token_timestamps:
                    token.from_ms = ticks_to_ms(data.t0)
                    token.to_ms = ticks_to_ms(data.t1)
                tokens.append(token)

                # special tokens (timestamps, language, task) sit above EOT
                if data.id <= eot:
                    probabilities.append(data.p)

            segment.tokens = tokens
            segment.confidence = segment_confidence(probabilities)
            segment.lang = detected_language

        segments.append(segment)
    return segments
