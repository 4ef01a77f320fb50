"""Transcription result entities: segments and their tokens."""

from __future__ import annotations

from pydantic import BaseModel, Field


def ticks_to_ms(ticks: int) -> int:
    """Convert whisper.cpp centisecond ticks to milliseconds."""
    return ticks * 10


class Token(BaseModel):
    """A single decoded sub-word unit."""

    text: str
    id: int
    p: float
    from_ms: int | None = Field(default=None, description='Only set when token timestamps were requested')
    to_ms: int | None = Field(default=None, description='Only set when token timestamps were requested')

    def to_dict(self) -> dict:
        data: dict = {'text': self.text, 'id': self.id, 'p': self.p}
        if self.from_ms is not None:
            data['from'] = self.from_ms
        if self.to_ms is not None:
            data['to'] = self.to_ms
        return data


class Segment(BaseModel):
    """A contiguous time-bounded span of decoded speech."""

    from_ms: int
    to_ms: int
    text: str
    lang: str | None = None
    confidence: float | None = None
    tokens: list[Token] | None = None

    @property
    def detailed(self) -> bool:
        return self.tokens is not None

    def to_dict(self) -> dict:
        """Host-facing shape: ``{from, to, text}`` plus ``lang/confidence/tokens`` in detail mode."""
        data: dict = {'from': self.from_ms, 'to': self.to_ms, 'text': self.text}
        if self.detailed:
            data['lang'] = self.lang
            data['confidence'] = self.confidence
            data['tokens'] = [token.to_dict() for token in self.tokens or []]
        return data
