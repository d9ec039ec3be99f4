"""Infrastructure provider configs — lives in L4, not domain."""

from __future__ import annotations

import copy
from typing import Literal

from pydantic import BaseModel, Field

from live_scribe.l1_entities.config import AppConfig
from live_scribe.l1_entities.container_format import DEFAULT_CONTAINER_PREFERENCE
from live_scribe.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'transcription': {
        'model': 'tiny.en',
        'chunk_length_s': 15.0,
        'stride_length_s': 5.0,
        'language': 'en',
    },
    'capture': {
        'window_seconds': 15.0,
        'container_preference': list(DEFAULT_CONTAINER_PREFERENCE),
        'device': None,
    },
    'file': {
        'window_seconds': 30.0,
    },
    'output': {
        'directory': './output',
        'save_audio': True,
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)


class InferenceProviderConfig(BaseModel):
    # 'subprocess' keeps whisper.cpp off the event loop's GIL; 'inprocess' is simpler to debug
    mode: Literal['subprocess', 'inprocess'] = 'subprocess'


class InfraConfig(BaseModel):
    """Groups all provider-specific settings outside the domain layer."""

    inference: InferenceProviderConfig = Field(default_factory=InferenceProviderConfig)
