"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pytest

from whisper_wrapper.l1_entities.params import FullParams
from whisper_wrapper.l2_use_cases.ports.engine import TokenData

EOT = 50257


@dataclass
class FakeToken:
    text: str
    id: int
    p: float
    t0: int = 0
    t1: int = 0


@dataclass
class FakeSegment:
    t0: int
    t1: int
    text: str
    tokens: list[FakeToken] = field(default_factory=list)


class FakeContext:
    """Stands in for a native whisper_context; refuses use after free."""

    def __init__(self, model_path: str) -> None:
        self.model_path = model_path
        self.freed = False

    def check(self) -> None:
        assert not self.freed, 'use of a freed whisper context'


# --- Protocol-conforming Fakes ---


class FakeEngine:
    """Fake whisper.cpp engine for L2/L3 tests."""

    def __init__(
        self,
        segments: list[FakeSegment] | None = None,
        status: int = 0,
        lang: str = 'en',
        fail_init: bool = False,
    ) -> None:
        self._segments = segments or []
        self._status = status
        self._lang = lang
        self._fail_init = fail_init
        self.init_calls: list[tuple[str, bool, bool]] = []
        self.free_calls: list[FakeContext] = []
        self.full_calls: list[tuple[FakeContext, FullParams, np.ndarray, int]] = []
        self.lang_queries = 0
        self.decode_started = threading.Event()
        self.decode_gate: threading.Event | None = None

    def init_from_file(self, model_path: str, *, use_gpu: bool, flash_attn: bool) -> FakeContext | None:
        self.init_calls.append((model_path, use_gpu, flash_attn))
        if self._fail_init:
            return None
        return FakeContext(model_path)

    def free(self, ctx: FakeContext) -> None:
        ctx.check()
        ctx.freed = True
        self.free_calls.append(ctx)

    def full_parallel(self, ctx: FakeContext, params: FullParams, samples: np.ndarray, n_processors: int) -> int:
        ctx.check()
        self.full_calls.append((ctx, params.model_copy(deep=True), samples, n_processors))
        self.decode_started.set()
        if self.decode_gate is not None:
            self.decode_gate.wait(timeout=5)
        ctx.check()
        return self._status

    def n_segments(self, ctx: FakeContext) -> int:
        ctx.check()
        return len(self._segments)

    def segment_t0(self, ctx: FakeContext, i_segment: int) -> int:
        return self._segments[i_segment].t0

    def segment_t1(self, ctx: FakeContext, i_segment: int) -> int:
        return self._segments[i_segment].t1

    def segment_text(self, ctx: FakeContext, i_segment: int) -> str:
        return self._segments[i_segment].text

    def n_tokens(self, ctx: FakeContext, i_segment: int) -> int:
        return len(self._segments[i_segment].tokens)

    def token_text(self, ctx: FakeContext, i_segment: int, i_token: int) -> str:
        return self._segments[i_segment].tokens[i_token].text

    def token_data(self, ctx: FakeContext, i_segment: int, i_token: int) -> TokenData:
        tok = self._segments[i_segment].tokens[i_token]
        return TokenData(id=tok.id, p=tok.p, t0=tok.t0, t1=tok.t1)

    def token_eot(self, ctx: FakeContext) -> int:
        return EOT

    def full_lang_id(self, ctx: FakeContext) -> int:
        self.lang_queries += 1
        return 0

    def lang_str(self, lang_id: int) -> str:
        return self._lang

    def set_segments(self, segments: list[FakeSegment]) -> None:
        self._segments = segments


class FakeAudioReader:
    """Fake audio file reader — returns fixed samples or raises."""

    def __init__(self, samples: np.ndarray | None = None, error: Exception | None = None) -> None:
        self._samples = samples if samples is not None else np.zeros(16000, dtype=np.float32)
        self._error = error
        self.calls: list[Path] = []

    def __call__(self, path: Path) -> np.ndarray:
        self.calls.append(path)
        if self._error is not None:
            raise self._error
        return self._samples


# --- Standard Fixtures ---


@pytest.fixture
def sample_segments() -> list[FakeSegment]:
    return [
        FakeSegment(
            t0=0,
            t1=150,
            text=' And so my fellow Americans',
            tokens=[
                FakeToken('[_BEG_]', EOT + 100, 0.99, 0, 0),
                FakeToken(' And', 400, 0.9, 0, 40),
                FakeToken(' so', 500, 0.9, 40, 60),
                FakeToken(' my', 600, 0.1, 60, 90),
                FakeToken(' fellow', 700, 0.95, 90, 150),
            ],
        ),
        FakeSegment(
            t0=150,
            t1=300,
            text=' ask not',
            tokens=[
                FakeToken(' ask', 800, 0.8, 150, 220),
                FakeToken(' not', 900, 0.4, 220, 300),
            ],
        ),
    ]


@pytest.fixture
def fake_engine(sample_segments: list[FakeSegment]) -> FakeEngine:
    return FakeEngine(segments=sample_segments)


@pytest.fixture
def fake_audio_reader() -> FakeAudioReader:
    return FakeAudioReader()


@pytest.fixture
def audio() -> np.ndarray:
    return np.full(16000, 0.1, dtype=np.float32)
