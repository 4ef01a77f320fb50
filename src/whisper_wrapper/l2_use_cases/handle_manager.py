"""Use case: engine context ownership. One owner per context, released exactly once."""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from whisper_wrapper.l1_entities.errors import EngineInitError, HandleFreedError, InvalidArgumentError
from whisper_wrapper.l2_use_cases.ports.engine import WhisperEngine

log = logging.getLogger('ww.handle')


class _ContextState:
    """Lock-guarded context slot, shared with the handle's finalizer."""

    def __init__(self, ctx: Any) -> None:
        self.lock = threading.Lock()
        self.ctx: Any = ctx
        self.freed = False


def _release_state(engine: WhisperEngine, state: _ContextState, model_path: str) -> bool:
    with state.lock:
        if state.freed or state.ctx is None:
            return False
        ctx, state.ctx = state.ctx, None
        state.freed = True
        engine.free(ctx)
    log.debug('Released whisper context for %s', model_path)
    return True


class WhisperHandle:
    """Exclusive owner of one engine context.

    The context is released by :func:`release` or, failing that, when the
    handle is garbage collected. Both paths take the handle lock and flip
    ``freed`` once; decode calls hold the same lock for their full duration.
    """

    def __init__(self, engine: WhisperEngine, ctx: Any, model_path: str) -> None:
        self.engine = engine
        self.model_path = model_path
        self._state = _ContextState(ctx)
        self._finalizer = weakref.finalize(self, _release_state, engine, self._state, model_path)

    @property
    def freed(self) -> bool:
        return self._state.freed

    def __repr__(self) -> str:
        status = 'freed' if self.freed else 'live'
        return f'<WhisperHandle {self.model_path!r} ({status})>'

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """Hold the handle lock and yield the live context.

        Raises:
            HandleFreedError: the context was released before the lock was taken.
        """
        with self._state.lock:
            if self._state.freed or self._state.ctx is None:
                raise HandleFreedError('Model has been freed')
            yield self._state.ctx

    def release(self) -> bool:
        """Free the context. Returns ``False`` if it was already freed."""
        return bool(self._finalizer())


def initialize(
    engine: WhisperEngine,
    model_path: Any,
    use_gpu: bool = True,
    flash_attn: bool = False,
) -> WhisperHandle:
    """Load *model_path* into a new engine context wrapped in a handle.

    Raises:
        InvalidArgumentError: *model_path* is missing or not a string.
        EngineInitError: the engine could not load the model.
    """
    if not isinstance(model_path, str) or not model_path:
        raise InvalidArgumentError("Missing 'model' path")

    log.info('Loading whisper model %s (gpu=%s, flash_attn=%s)', model_path, use_gpu, flash_attn)
    try:
        ctx = engine.init_from_file(model_path, use_gpu=use_gpu, flash_attn=flash_attn)
    except Exception as exc:
        raise EngineInitError(f'Failed to initialize whisper context: {exc}') from exc
    if ctx is None:
        raise EngineInitError('Failed to initialize whisper context')

    return WhisperHandle(engine, ctx, model_path)


def release(handle: WhisperHandle) -> bool:
    """Idempotently release *handle*. Safe to race with GC and in-flight decodes."""
    if not isinstance(handle, WhisperHandle):
        raise InvalidArgumentError('Invalid context handle')
    return handle.release()
