"""Gateway: locate and import the native ``_pywhispercpp`` extension.

A binding root may hold one build per backend, laid out as
``<root>/<platform>-<arch>[-<backend>]/_pywhispercpp*.so`` plus a
``cpu-fallback`` build. GPU builds are tried first; a build that fails to
load (missing driver, wrong runtime) falls through to the next one.
Without a binding root the installed extension is used.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from whisper_wrapper.l1_entities.errors import BindingLoadError

log = logging.getLogger('ww.binding')

BINDING_MODULE = '_pywhispercpp'
BINDING_DIR_ENV = 'WHISPER_WRAPPER_BINDING_DIR'

GPU_FIRST_CANDIDATES = ('metal', 'openblas', 'cuda', 'vulkan')
_BACKEND_TYPES = ('cuda', 'vulkan', 'metal', 'openblas')


@dataclass(frozen=True)
class BindingInfo:
    path: str
    type: str


_loaded: tuple[ModuleType, BindingInfo] | None = None


def _platform_tag() -> tuple[str, str]:
    machine = platform.machine().lower()
    arch = {'x86_64': 'x64', 'amd64': 'x64', 'aarch64': 'arm64'}.get(machine, machine)
    return sys.platform, arch


def candidate_dirs(plat: str, arch: str) -> list[str]:
    return [
        *(f'{plat}-{arch}-{tag}' for tag in GPU_FIRST_CANDIDATES),
        f'{plat}-{arch}',
        'cpu-fallback',
    ]


def binding_type_for(dir_name: str) -> str:
    for backend in _BACKEND_TYPES:
        if dir_name.endswith(f'-{backend}'):
            return backend
    if dir_name == 'cpu-fallback':
        return 'cpu-fallback'
    return 'cpu'


def _find_extension(directory: Path) -> Path | None:
    if not directory.is_dir():
        return None
    matches = sorted(
        p for p in directory.iterdir() if p.name.startswith(BINDING_MODULE) and p.suffix in ('.so', '.pyd', '.dylib')
    )
    return matches[0] if matches else None


def _import_from(path: Path) -> ModuleType:
    spec = importlib.util.spec_from_file_location(BINDING_MODULE, path)
    if spec is None or spec.loader is None:
        raise ImportError(f'Cannot build import spec for {path}')
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    sys.modules[BINDING_MODULE] = module
    return module


def _load_from_root(root: Path) -> tuple[ModuleType, BindingInfo]:
    plat, arch = _platform_tag()
    attempted: list[str] = []
    last_error: BaseException | None = None

    for dir_name in candidate_dirs(plat, arch):
        candidate = _find_extension(root / dir_name)
        if candidate is None:
            continue

        attempted.append(str(candidate))
        try:
            module = _import_from(candidate)
        except (ImportError, OSError) as exc:
            log.warning('Failed to load %s: %s. Trying next candidate...', candidate, exc)
            last_error = exc
            continue

        if len(attempted) > 1:
            log.warning('Loaded fallback binary: %s (attempted %d candidates)', candidate, len(attempted))
        return module, BindingInfo(path=str(candidate), type=binding_type_for(dir_name))

    if last_error is not None:
        raise BindingLoadError(
            f'Unable to load {BINDING_MODULE} for {plat}-{arch}. Attempted: {", ".join(attempted)}'
        ) from last_error
    raise BindingLoadError(f'No suitable {BINDING_MODULE} binary found for {plat}-{arch} under {root}')


def _load_installed() -> tuple[ModuleType, BindingInfo]:
    try:
        module = importlib.import_module(BINDING_MODULE)
    except ImportError as exc:
        raise BindingLoadError(f'{BINDING_MODULE} is not importable; install pywhispercpp') from exc
    return module, BindingInfo(path=getattr(module, '__file__', None) or BINDING_MODULE, type='installed')


def load_binding(root: str | os.PathLike | None = None) -> ModuleType:
    """Import the native binding once per process and remember where it came from."""
    global _loaded  # noqa: PLW0603 -- process-wide binding cache
    if _loaded is not None:
        return _loaded[0]

    root = root if root is not None else os.environ.get(BINDING_DIR_ENV)
    module, info = _load_from_root(Path(root)) if root else _load_installed()
    log.info('Using whisper binding %s (%s)', info.path, info.type)
    _loaded = (module, info)
    return module


def get_loaded_binding_info() -> BindingInfo | None:
    return _loaded[1] if _loaded is not None else None


def reset_binding_cache() -> None:
    """Forget the loaded binding. The imported module itself stays in ``sys.modules``."""
    global _loaded  # noqa: PLW0603 -- process-wide binding cache
    _loaded = None
