"""Relay configuration: YAML file plus ``LLMBRIDGE_*`` environment overrides"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator

from llmbridge.streaming.buffer import DEFAULT_MAX_BUFFER_SIZE, StreamingConfig
from llmbridge.types.provider import Provider

CONFIG_PATH = Path(__file__).with_name("config.yaml")
ENV_PREFIX = "LLMBRIDGE_"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class BridgeSettings(BaseModel):
    """Upstream endpoint and relay settings"""

    url: Union[AnyHttpUrl, str]
    apikey: str
    source: Provider
    timeout_seconds: Optional[float] = Field(
        default=60.0, description="Optional timeout applied to the upstream request"
    )
    anthropic_version: str = "2023-06-01"
    default_max_tokens: Optional[int] = Field(
        default=1024,
        gt=0,
        description="max_tokens sent to providers that require it when the client omits it",
    )
    max_buffer_size: int = Field(default=DEFAULT_MAX_BUFFER_SIZE, gt=0)
    log_level: str = "INFO"

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> Provider:
        return Provider.coerce(value)

    @property
    def streaming_config(self) -> StreamingConfig:
        return StreamingConfig(max_buffer_size=self.max_buffer_size)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path} must contain a mapping")
    return loaded


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides = {}
    for name in BridgeSettings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BridgeSettings:
    """Build settings from a YAML file, then apply environment overrides

    The file defaults to ``LLMBRIDGE_CONFIG`` or ``config.yaml`` beside this
    module; a missing default file is not an error.
    """
    environ = os.environ if environ is None else environ
    merged: Dict[str, Any] = {}

    explicit = path or environ.get(f"{ENV_PREFIX}CONFIG")
    config_path = Path(explicit) if explicit else CONFIG_PATH
    if explicit or config_path.exists():
        merged.update(_read_yaml(config_path))

    merged.update(_env_overrides(environ))
    return BridgeSettings.model_validate(merged)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
