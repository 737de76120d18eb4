from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .schemas import EntryKind


class PredicateKind(StrEnum):
    NAME = "name"
    NAME_GLOB = "name_glob"
    EXTENSION = "extension"
    IS_DIR = "is_dir"
    KIND = "kind"


class PredicateConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: PredicateKind
    value: bool | str
    case_sensitive: bool | None = None

    @field_validator("value")
    @classmethod
    def strip_string_value(cls, value: bool | str) -> bool | str:
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def validate_value_for_kind(self) -> PredicateConfig:
        if self.kind is PredicateKind.IS_DIR:
            if not isinstance(self.value, bool):
                raise ValueError("predicates[].value must be a boolean when kind is is_dir")
            return self

        if not isinstance(self.value, str) or not self.value:
            raise ValueError(f"predicates[].value must be a non-empty string when kind is {self.kind}")

        if self.kind is PredicateKind.KIND:
            allowed = {kind.value for kind in EntryKind}
            if self.value.lower() not in allowed:
                allowed_text = ", ".join(sorted(allowed))
                raise ValueError(f"predicates[].value must be one of: {allowed_text}")
        return self


class FinderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    root: Path | None = None
    follow_links: bool = False
    yield_root: bool = False
    sort_by_name: bool = False
    min_depth: int = Field(default=0, ge=0)
    max_depth: int | None = Field(default=None, ge=0)
    predicates: list[PredicateConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_depth_bounds(self) -> FinderConfig:
        if self.max_depth is not None and self.max_depth < self.min_depth:
            raise ValueError("max_depth must be greater than or equal to min_depth")
        return self


def load_config(path: str | Path) -> FinderConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return FinderConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = _parse_yaml(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed


def _parse_yaml(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Configuration is neither JSON nor YAML: {exc}") from exc
