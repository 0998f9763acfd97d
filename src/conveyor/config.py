"""Configuration loading and validation for pipelines and the engine."""

from __future__ import annotations

import logging
from collections.abc import Hashable
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from conveyor.schema import PipelineDescription


class ConfigValidationError(ValueError):
    """Raised when a pipeline description does not validate."""


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that rejects a mapping key given twice."""

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            self.flatten_mapping(node)
            seen = set()
            for key_node, _ in node.value:
                key = self.construct_object(key_node, deep=deep)
                if not isinstance(key, Hashable):
                    continue
                if key in seen:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"found duplicate key {key!r}",
                        key_node.start_mark,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


class EngineSettings(BaseSettings):
    """Engine settings, overridable with ``CONVEYOR_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CONVEYOR_", extra="forbid")

    max_passes: Optional[int] = Field(default=None, ge=1)
    trace_path: Optional[Path] = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


def validate_config_dict(raw: object, model: type[BaseModel]) -> BaseModel:
    """Validate a pre-loaded config mapping against a pydantic model."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigValidationError("Config file root must be a mapping/object.")

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def load_and_validate_config(path: Path, model: type[BaseModel]) -> BaseModel:
    """Load a YAML (or JSON) file and validate it with the provided pydantic model."""
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = yaml.load(f, Loader=UniqueKeyLoader)
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"{path}: {exc}") from exc
    return validate_config_dict(raw, model)


def load_description(path: Path) -> PipelineDescription:
    return load_and_validate_config(path, PipelineDescription)
