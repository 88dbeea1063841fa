# farmgeo/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `farmgeo/config/defaults.yaml`, or from an external
YAML file named by `FARMGEO_CONFIG_PATH`, then overlaid with a small whitelist
of environment variables (`FARMGEO_LOG_LEVEL`, `FARMGEO_AREA_METHOD`).
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from farmgeo.geometry import AreaMethod


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `farmgeo.config`."""
    text = resources.files("farmgeo.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "farmgeo"
    log_level: str = "INFO"


class AreaSettings(BaseModel):
    method: AreaMethod = AreaMethod.SPHERICAL

    @field_validator("method", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class SizeRange(BaseModel):
    min: float = Field(..., ge=0)
    max: Optional[float] = None
    label: str


def _default_size_ranges() -> list[SizeRange]:
    return [
        SizeRange(min=0, max=1, label="0-1 hectares"),
        SizeRange(min=1, max=5, label="1-5 hectares"),
        SizeRange(min=5, max=10, label="5-10 hectares"),
        SizeRange(min=10, max=50, label="10-50 hectares"),
        SizeRange(min=50, max=None, label="50+ hectares"),
    ]


class AnalyticsSettings(BaseModel):
    size_ranges: list[SizeRange] = Field(default_factory=_default_size_ranges)

    @field_validator("size_ranges")
    @classmethod
    def _contiguous(cls, v: list[SizeRange]) -> list[SizeRange]:
        if not v:
            raise ValueError("size_ranges must not be empty")
        for prev, nxt in zip(v, v[1:]):
            if prev.max is None or prev.max != nxt.min:
                raise ValueError(f"size range '{prev.label}' must end where '{nxt.label}' starts")
        return v

    def as_tuples(self) -> list[tuple[float, Optional[float], str]]:
        return [(r.min, r.max, r.label) for r in self.size_ranges]


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    area: AreaSettings = Field(default_factory=AreaSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload."""
    data = dict(data)
    log_level = os.getenv("FARMGEO_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    method = os.getenv("FARMGEO_AREA_METHOD")
    if method:
        data.setdefault("area", {})["method"] = method

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    config_path = os.getenv("FARMGEO_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
