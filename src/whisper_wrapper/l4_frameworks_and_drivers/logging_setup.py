"""Logging setup for the CLI; library code only creates loggers."""

from __future__ import annotations

import logging
from pathlib import Path

_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Attach a stderr handler (and optionally a debug file handler) to the ``ww`` logger."""
    root = logging.getLogger('ww')
    root.setLevel(logging.DEBUG)
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    root.addHandler(console)

    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding='utf-8')
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        logging.getLogger('ww.cli').info('Debug logging started → %s', log_file)
