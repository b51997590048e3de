from __future__ import annotations

import json
import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import Size
from domain.services.drag_state import DragConfig

DEFAULT_CONFIG_PATH = Path("config/flowrooms.yaml")
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class GestureSettings(BaseModel):
    double_click_ms: float = Field(default=350.0, gt=0)
    drag_threshold: float = Field(default=6.0, ge=0)
    point_spacing: float = Field(default=6.0, ge=0)
    stub_length_ratio: float = Field(default=0.12, gt=0)
    edge_margin: float = Field(default=12.0, ge=0)

    def to_drag_config(self) -> DragConfig:
        return DragConfig(
            double_click_ms=self.double_click_ms,
            drag_threshold=self.drag_threshold,
            point_spacing=self.point_spacing,
            stub_length_ratio=self.stub_length_ratio,
            edge_margin=self.edge_margin,
        )


class CapacitySettings(BaseModel):
    default_capacity: int | None = Field(default=None, ge=0)
    overrides: dict[str, int] = Field(default_factory=dict)

    @field_validator("overrides", mode="before")
    @classmethod
    def normalize_overrides(cls, value: object) -> dict[str, int]:
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                msg = "capacity.overrides must be a JSON object"
                raise ValueError(msg) from exc
        if not isinstance(value, dict):
            msg = "capacity.overrides must be a JSON object"
            raise ValueError(msg)
        return {str(key).strip().upper(): int(item) for key, item in value.items()}


class ViewSettings(BaseModel):
    width: float = Field(default=800.0, gt=0)
    height: float = Field(default=600.0, gt=0)

    def to_size(self) -> Size:
        return Size(self.width, self.height)


class PuzzleSettings(BaseModel):
    node_tree_path: Path | None = None
    log_level: str = "WARNING"
    gesture: GestureSettings = GestureSettings()
    capacity: CapacitySettings = CapacitySettings()
    view: ViewSettings = ViewSettings()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        level = str(value or "WARNING").strip().upper()
        if level not in _LOG_LEVELS:
            msg = f"Unsupported log level: {value}"
            raise ValueError(msg)
        return level


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FLOWROOMS_", env_nested_delimiter="__")

    puzzle: PuzzleSettings = PuzzleSettings()

    _yaml_file: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML sits last so environment variables win over the file.
        yaml_sources = (
            (YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_file),)
            if cls._yaml_file is not None
            else ()
        )
        return (init_settings, env_settings, dotenv_settings, file_secret_settings, *yaml_sources)


def resolve_config_path(config_path: Path | None = None) -> Path | None:
    if config_path is not None:
        candidate = config_path
    elif os.getenv("FLOWROOMS_CONFIG_PATH"):
        candidate = Path(os.environ["FLOWROOMS_CONFIG_PATH"])
    elif DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    else:
        return None
    if not candidate.exists():
        msg = f"Config file not found: {candidate}"
        raise FileNotFoundError(msg)
    return candidate


def load_settings(config_path: Path | None = None) -> AppSettings:
    yaml_file = resolve_config_path(config_path)
    previous = AppSettings._yaml_file
    AppSettings._yaml_file = yaml_file
    try:
        return AppSettings()
    finally:
        AppSettings._yaml_file = previous
