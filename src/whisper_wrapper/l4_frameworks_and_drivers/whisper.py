"""Whisper facade: one loaded model, transcribed synchronously or from asyncio."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import numpy as np

from whisper_wrapper.l2_use_cases.ports.engine import WhisperEngine
from whisper_wrapper.l3_interface_adapters.controllers import binding_controller
from whisper_wrapper.l3_interface_adapters.gateways.binding_loader import BindingInfo, get_loaded_binding_info


class Whisper:
    """Owns one model handle. The model is loaded on construction.

    Calls on one instance are serialized by the handle lock; separate
    instances transcribe concurrently.
    """

    def __init__(
        self,
        model_path: str,
        gpu: bool | None = None,
        flash_attn: bool = False,
        engine: WhisperEngine | None = None,
    ) -> None:
        self.model_path = model_path
        init_options: dict[str, Any] = {'model': model_path, 'flash_attn': flash_attn}
        if gpu is not None:
            init_options['gpu'] = gpu
        self._handle = binding_controller.init(init_options, engine=engine)

    def __enter__(self) -> Whisper:
        return self

    def __exit__(self, *args) -> None:
        self.free()

    def load(self) -> None:
        """No-op: the model is already loaded by the constructor."""

    def transcribe(self, audio: np.ndarray | None, options: Mapping[str, Any] | None = None) -> list[dict]:
        """Transcribe *audio* (or ``options['fname_inp']`` when *audio* is ``None``)."""
        payload = dict(options or {})
        if audio is not None:
            payload['audio'] = audio
        return binding_controller.full(self._handle, payload)

    async def transcribe_async(
        self, audio: np.ndarray | None, options: Mapping[str, Any] | None = None
    ) -> list[dict]:
        """Run :meth:`transcribe` on a worker thread.

        Cancelling the awaiting task does not stop the decode; it runs to
        completion on its thread and its result is discarded.
        """
        return await asyncio.to_thread(self.transcribe, audio, options)

    def free(self) -> None:
        binding_controller.free(self._handle)

    @property
    def freed(self) -> bool:
        return self._handle.freed

    @staticmethod
    def get_binding_info() -> BindingInfo | None:
        return get_loaded_binding_info()
