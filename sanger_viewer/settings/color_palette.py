"""
Color palette management for sanger_viewer.

The :class:`ColorPalette` class reads user-provided colors from
:class:`sanger_viewer.settings.config.AppConfig` while preserving defaults from
the bundled configuration. User updates can be persisted back to the user
configuration file, keeping the rest of the application decoupled from storage
concerns.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .config import AppConfig

_PALETTE_FIELDS = {"background", "foreground", "unknown_nucleotide", "selection", "highlight"}


class ColorPalette:
    """Access and mutate user-customizable colors."""

    def __init__(self, config: AppConfig):
        self._config = config
        self._colors: Mapping[str, str] = MappingProxyType({})
        self._nucleotides: Mapping[str, str] = MappingProxyType({})
        self._channels: Mapping[str, str] = MappingProxyType({})
        self._refresh()

    def _refresh(self) -> None:
        palette = self._config.color_palette
        # Cache to avoid repeated lookups and guarantee read-only access.
        self._colors = MappingProxyType(
            {
                **{name: getattr(palette, name) for name in _PALETTE_FIELDS},
                **palette.highlights,
            }
        )
        self._nucleotides = MappingProxyType({k.upper(): v for k, v in palette.nucleotides.items()})
        self._channels = MappingProxyType({k.upper(): v for k, v in palette.channels.items()})

    def get_background_color(self) -> str:
        """Return the configured background color."""

        return self._colors.get("background", "#FFFFFF")

    def get_foreground_color(self) -> str:
        return self._colors.get("foreground", "#000000")

    def get_nucleotide_color(self, base: str) -> str:
        """Color of a base glyph; unknown symbols share one fallback color."""

        return self._nucleotides.get(base.upper(), self._colors.get("unknown_nucleotide", "#999999"))

    def get_channel_color(self, channel: str) -> str:
        return self._channels.get(channel.upper(), self.get_foreground_color())

    def get_feature_color(self, feature_name: str) -> Optional[str]:
        """Return the color associated with a feature or None if missing."""

        return self._colors.get(feature_name)

    @property
    def nucleotide_colors(self) -> Mapping[str, str]:
        return self._nucleotides

    def set_custom_color(self, key: str, value: str) -> None:
        """Persist a custom color to the user configuration file.

        The change is written to disk immediately and reflected in the
        underlying :class:`AppConfig` instance. ``nucleotide:X`` and
        ``channel:X`` keys address a single base or trace channel.
        """

        palette = self._config.color_palette
        if key in _PALETTE_FIELDS:
            setattr(palette, key, value)
        elif key.startswith("nucleotide:"):
            palette.nucleotides = {**palette.nucleotides, key.split(":", 1)[1].upper(): value}
        elif key.startswith("channel:"):
            palette.channels = {**palette.channels, key.split(":", 1)[1].upper(): value}
        else:
            palette.highlights = {**palette.highlights, key: value}

        self._config.save_user_settings()
        self._refresh()
