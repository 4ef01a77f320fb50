"""Built-in CLI defaults, merged under user config and flags."""

from __future__ import annotations

import copy

from whisper_wrapper.l1_entities.config import AppConfig
from whisper_wrapper.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'init': {
        'model': None,
        'gpu': True,
        'flash_attn': False,
    },
    'full': {
        'language': 'auto',
        'no_timestamps': False,
        'suppress_blank': True,
        'suppress_non_speech_tokens': True,
    },
    'log_file': None,
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)
