"""Port: audio file reader."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import numpy as np


class AudioReader(Protocol):
    """Decodes an audio file into float32 mono PCM at 16 kHz."""

    def __call__(self, path: Path) -> np.ndarray:
        """Raise ``FileNotFoundError`` or ``RuntimeError`` when the file cannot be decoded."""
        ...
