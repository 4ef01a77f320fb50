"""whisper-wrapper: thread-safe Python binding layer over whisper.cpp transcription."""

from __future__ import annotations

import importlib
from typing import Any

__version__ = '0.1.0'

# Public names resolve on first access so ``import whisper_wrapper`` (and the
# CLI's ``--help``) does not pull in numpy, pydantic or the native binding.
_EXPORTS = {
    'init': 'whisper_wrapper.l3_interface_adapters.controllers.binding_controller',
    'full': 'whisper_wrapper.l3_interface_adapters.controllers.binding_controller',
    'free': 'whisper_wrapper.l3_interface_adapters.controllers.binding_controller',
    'Whisper': 'whisper_wrapper.l4_frameworks_and_drivers.whisper',
}

__all__ = ['Whisper', '__version__', 'free', 'full', 'init']


def __getattr__(name: str) -> Any:
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(f'module {__name__!r} has no attribute {name!r}')
    return getattr(importlib.import_module(module), name)
