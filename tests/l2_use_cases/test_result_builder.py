"""Tests for the result builder — segment/token projection and confidence."""

from __future__ import annotations

import pytest

from tests.conftest import EOT, FakeContext, FakeEngine, FakeSegment, FakeToken
from whisper_wrapper.l2_use_cases.parameter_translator import parse_full_params
from whisper_wrapper.l2_use_cases.result_builder import build_segments, segment_confidence


class TestSegmentConfidence:
    def test_trimmed_mean_over_four(self):
        assert segment_confidence([0.9, 0.9, 0.1, 0.95]) == pytest.approx(0.9)

    def test_plain_mean_for_two(self):
        assert segment_confidence([0.8, 0.4]) == pytest.approx(0.6)

    def test_single_value(self):
        assert segment_confidence([0.7]) == pytest.approx(0.7)

    def test_empty_is_zero(self):
        assert segment_confidence([]) == 0.0

    def test_three_values_keep_middle(self):
        assert segment_confidence([0.2, 0.5, 0.9]) == pytest.approx(0.5)


class TestBuildSegments:
    def test_plain_segments(self, fake_engine: FakeEngine):
        segments = build_segments(fake_engine, FakeContext('/m.bin'), parse_full_params({}))

        assert [(s.from_ms, s.to_ms, s.text) for s in segments] == [
            (0, 1500, ' And so my fellow Americans'),
            (1500, 3000, ' ask not'),
        ]
        assert all(s.tokens is None and s.confidence is None and s.lang is None for s in segments)
        assert fake_engine.lang_queries == 0

    def test_detail_mode_tokens_and_confidence(self, fake_engine: FakeEngine):
        segments = build_segments(fake_engine, FakeContext('/m.bin'), parse_full_params({'format': 'detail'}))

        first, second = segments
        assert [t.text for t in first.tokens] == ['[_BEG_]', ' And', ' so', ' my', ' fellow']
        assert first.confidence == pytest.approx(0.9)
        assert second.confidence == pytest.approx(0.6)
        assert first.lang == 'en'
        assert second.lang == 'en'
        assert fake_engine.lang_queries == 1

    def test_special_token_kept_in_tokens_but_not_confidence(self, fake_engine: FakeEngine):
        first = build_segments(fake_engine, FakeContext('/m.bin'), parse_full_params({'format': 'detail'}))[0]
        assert first.tokens[0].id > EOT
        assert first.tokens[0].p == pytest.approx(0.99)

    def test_token_times_only_with_token_timestamps(self, fake_engine: FakeEngine):
        ctx = FakeContext('/m.bin')
        without = build_segments(fake_engine, ctx, parse_full_params({'format': 'detail'}))
        assert without[0].tokens[1].from_ms is None
        assert without[0].tokens[1].to_ms is None

        with_ts = build_segments(fake_engine, ctx, parse_full_params({'format': 'detail', 'token_timestamps': True}))
        assert with_ts[0].tokens[1].from_ms == 0
        assert with_ts[0].tokens[1].to_ms == 400

    def test_only_special_tokens_gives_zero_confidence(self):
        engine = FakeEngine(segments=[FakeSegment(0, 10, ' [Music]', [FakeToken('[_TT_1]', EOT + 5, 0.8)])])
        segment = build_segments(engine, FakeContext('/m.bin'), parse_full_params({'format': 'detail'}))[0]
        assert segment.confidence == 0.0
        assert len(segment.tokens) == 1

    def test_eot_token_itself_counts(self):
        engine = FakeEngine(segments=[FakeSegment(0, 10, ' hi', [FakeToken('<|endoftext|>', EOT, 0.5)])])
        segment = build_segments(engine, FakeContext('/m.bin'), parse_full_params({'format': 'detail'}))[0]
        assert segment.confidence == pytest.approx(0.5)

    def test_no_segments(self):
        assert build_segments(FakeEngine(), FakeContext('/m.bin'), parse_full_params({'format': 'detail'})) == []

    def test_tick_conversion(self):
        engine = FakeEngine(segments=[FakeSegment(150, 151, 'x')])
        segment = build_segments(engine, FakeContext('/m.bin'), parse_full_params({}))[0]
        assert segment.from_ms == 1500
        assert segment.to_ms == 1510
