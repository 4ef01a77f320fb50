"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class InitConfig(BaseModel):
    model_config = {'protected_namespaces': ()}

    model: str | None = None
    gpu: bool
    flash_attn: bool


class AppConfig(BaseModel):
    init: InitConfig
    full: dict[str, Any] = Field(default_factory=dict, description='Run options forwarded to full()')
    log_file: str | None = None
