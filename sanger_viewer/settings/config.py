"""
Application configuration management for the sanger_viewer package.

This module exposes the ``AppConfig`` class which centralizes reading and
validating settings from multiple sources in the following precedence:

1. Environment variables (highest priority), ``SANGER_VIEWER_`` prefix and
   ``__`` as the nested delimiter (``SANGER_VIEWER_VIEWPORT__DEFAULT_ZOOM``).
2. User configuration file (``~/.sanger_viewer/config.json`` by default).
3. Immutable default settings bundled with the package
   (``data/default_settings.json``).
4. Field defaults.

The configuration is decomposed into focused sub-models so each viewer
component only reads the part it draws with.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple, Type

from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "data" / "default_settings.json"
DEFAULT_USER_CONFIG_PATH = Path.home() / ".sanger_viewer" / "config.json"


def _default_nucleotide_colors() -> Dict[str, str]:
    return {
        "A": "#32CD32",
        "C": "#0000FF",
        "G": "#000000",
        "T": "#FF0000",
        "R": "#808000",
        "Y": "#800080",
        "S": "#008080",
        "W": "#808080",
        "K": "#404000",
        "M": "#004040",
        "N": "#D3D3D3",
        "-": "#D3D3D3",
    }


def _default_channel_colors() -> Dict[str, str]:
    return {
        "A": "#008000",
        "C": "#0000FF",
        "G": "#000000",
        "T": "#FF0000",
    }


class ColorPaletteSettings(BaseModel):
    """User-customizable colors with sensible defaults."""

    background: str = "#FFFFFF"
    foreground: str = "#000000"
    unknown_nucleotide: str = "#999999"
    nucleotides: Dict[str, str] = Field(default_factory=_default_nucleotide_colors)
    channels: Dict[str, str] = Field(default_factory=_default_channel_colors)
    selection: str = "#4A90D9"
    highlight: str = "#FFF59D"
    highlights: Dict[str, str] = Field(default_factory=dict)


class ViewportSettings(BaseModel):
    """Initial state of the shared viewport."""

    default_zoom: int = Field(100, ge=1)
    variant_window: int = Field(10, ge=1)


class RowSettings(BaseModel):
    """Geometry of the alignment rows."""

    char_width: float = Field(12.0, gt=0)
    char_height: float = Field(18.0, gt=0)
    label_width: int = Field(160, ge=0)
    show_all_bases: bool = False
    zoom_frame_ms: int = Field(16, ge=0)


class ChromatogramSettings(BaseModel):
    """Geometry of the per-read chromatogram surfaces."""

    height: float = Field(150.0, gt=0)
    default_zoom_x: float = Field(10.0, gt=0)
    zoom_frame_ms: int = Field(16, ge=0)


class DataSourceSettings(BaseModel):
    """Configuration for data retrieval."""

    type: str = Field("file", description="Data source type: file, api, or database")
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        allowed = {"file", "api", "database"}
        if value not in allowed:
            raise ValueError(f"Unsupported data source type '{value}'. Allowed: {allowed}")
        return value


class JsonFileSettingsSource(PydanticBaseSettingsSource):
    """Settings source that returns the whole content of one JSON file."""

    def __init__(self, settings_cls: Type[BaseSettings], path: Path):
        super().__init__(settings_cls)
        self.path = path

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        # Values are returned all at once from __call__
        return None, field_name, False

    def __call__(self) -> Dict[str, Any]:
        if self.path.exists():
            return _load_json_settings(self.path)
        return {}


class AppConfig(BaseSettings):
    """Central application configuration.

    The class leverages ``BaseSettings`` to merge environment variables,
    user overrides, and bundled defaults into a single typed interface.
    Nested dictionaries are merged key by key across sources.
    """

    model_config = SettingsConfigDict(
        env_prefix="SANGER_VIEWER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    color_palette: ColorPaletteSettings = Field(default_factory=ColorPaletteSettings)
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    rows: RowSettings = Field(default_factory=RowSettings)
    chromatogram: ChromatogramSettings = Field(default_factory=ChromatogramSettings)
    data_source: DataSourceSettings = Field(default_factory=DataSourceSettings)

    # Tracks the resolved user configuration path so helper classes can persist
    # user edits (e.g., custom colors) back to disk.
    user_config_path: Path = Field(default=DEFAULT_USER_CONFIG_PATH, exclude=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        user_path = DEFAULT_USER_CONFIG_PATH
        if isinstance(init_settings, InitSettingsSource):
            user_path = Path(init_settings.init_kwargs.get("user_config_path", user_path))

        return (
            env_settings,
            JsonFileSettingsSource(settings_cls, user_path),
            JsonFileSettingsSource(settings_cls, DEFAULT_SETTINGS_PATH),
            init_settings,
            file_secret_settings,
        )

    def save_user_settings(self) -> None:
        """Persist the current configuration to the user config path.

        Only stores serializable settings to keep the file lean.
        """

        payload = json.loads(self.model_dump_json(exclude={"user_config_path"}))
        _write_json_settings(self.user_config_path, payload)


def _load_json_settings(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in settings file '{path}'") from exc


def _write_json_settings(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
