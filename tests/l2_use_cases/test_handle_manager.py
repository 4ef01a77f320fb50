"""Tests for the handle manager — single-owner release and lock semantics."""

from __future__ import annotations

import gc
import threading

import pytest

from tests.conftest import FakeEngine
from whisper_wrapper.l1_entities.errors import EngineInitError, HandleFreedError, InvalidArgumentError
from whisper_wrapper.l2_use_cases.handle_manager import WhisperHandle, initialize, release


class _RaisingEngine(FakeEngine):
    def init_from_file(self, model_path, *, use_gpu, flash_attn):
        raise RuntimeError('unsupported model version')


class TestInitialize:
    def test_passes_flags_to_engine(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m/ggml-base.bin', use_gpu=False, flash_attn=True)

        assert engine.init_calls == [('/m/ggml-base.bin', False, True)]
        assert isinstance(handle, WhisperHandle)
        assert handle.freed is False
        assert handle.model_path == '/m/ggml-base.bin'

    @pytest.mark.parametrize('model_path', [None, '', 42])
    def test_missing_model_path_is_caller_error(self, model_path):
        engine = FakeEngine()
        with pytest.raises(InvalidArgumentError, match="Missing 'model' path"):
            initialize(engine, model_path)
        assert engine.init_calls == []

    def test_engine_returning_none_raises(self):
        with pytest.raises(EngineInitError, match='Failed to initialize whisper context'):
            initialize(FakeEngine(fail_init=True), '/bad.bin')

    def test_engine_exception_is_chained(self):
        with pytest.raises(EngineInitError, match='unsupported model version') as exc_info:
            initialize(_RaisingEngine(), '/bad.bin')
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestRelease:
    def test_release_frees_once(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m.bin')

        assert release(handle) is True
        assert release(handle) is False
        assert len(engine.free_calls) == 1
        assert handle.freed is True

    def test_release_rejects_non_handle(self):
        with pytest.raises(InvalidArgumentError, match='Invalid context handle'):
            release(object())  # type: ignore[arg-type]

    def test_concurrent_release_frees_exactly_once(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m.bin')
        barrier = threading.Barrier(8)
        results: list[bool] = []
        lock = threading.Lock()

        def _worker():
            barrier.wait()
            outcome = release(handle)
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=_worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert results.count(True) == 1
        assert len(engine.free_calls) == 1

    def test_garbage_collection_frees_context(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m.bin')
        del handle
        gc.collect()
        assert len(engine.free_calls) == 1

    def test_release_then_collect_does_not_double_free(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m.bin')
        release(handle)
        del handle
        gc.collect()
        assert len(engine.free_calls) == 1


class TestAcquire:
    def test_acquire_yields_live_context(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m.bin')
        with handle.acquire() as ctx:
            assert ctx.model_path == '/m.bin'

    def test_acquire_after_release_raises(self):
        handle = initialize(FakeEngine(), '/m.bin')
        release(handle)
        with pytest.raises(HandleFreedError, match='Model has been freed'):
            with handle.acquire():
                pass

    def test_release_waits_for_holder(self):
        engine = FakeEngine()
        handle = initialize(engine, '/m.bin')
        released = threading.Event()

        with handle.acquire():
            t = threading.Thread(target=lambda: (release(handle), released.set()))
            t.start()
            assert not released.wait(timeout=0.2)
            assert engine.free_calls == []

        t.join(timeout=5)
        assert released.is_set()
        assert len(engine.free_calls) == 1

    def test_repr_reports_state(self):
        handle = initialize(FakeEngine(), '/m.bin')
        assert 'live' in repr(handle)
        release(handle)
        assert 'freed' in repr(handle)
