"""cornifer/palette.py — Subregion colors and the named color database.

Colors are RGBA tuples of 0–255 ints. Palette files are YAML::

    colors:
      reg_SL_acid: "#30c040"
    subregions:
      - name: ""
        background: "#8098b0"
        water: "#2050c0"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

Color = tuple[int, int, int, int]

BLACK: Color = (0, 0, 0, 255)
RED: Color = (255, 0, 0, 255)
TRANSPARENT: Color = (0, 0, 0, 0)
NEUTRAL_COLOR: Color = (255, 255, 255, 255)

# Fallback colors for rooms whose subregion is unknown
_DEFAULT_BACKGROUND = 0x8098B0
_DEFAULT_WATER = 0x2050C0
_DEFAULT_ACID = 0x0000FF


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

def to_color(value: Union[str, int, list, tuple]) -> Color:
    """Convert ``"#rrggbb"``, ``"#rrggbbaa"``, ``0xRRGGBB`` or a sequence."""
    if isinstance(value, int):
        return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, 255)
    if isinstance(value, str):
        text = value.strip().lstrip("#")
        if len(text) not in (6, 8):
            raise ValueError(f"Bad color string: {value!r}")
        channels = [int(text[i:i + 2], 16) for i in range(0, len(text), 2)]
        if len(channels) == 3:
            channels.append(255)
        return tuple(channels)  # type: ignore[return-value]
    channels = [int(c) for c in value]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4:
        raise ValueError(f"Bad color sequence: {value!r}")
    return tuple(channels)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Subregion:
    """A named background/water color scheme."""

    name: str
    background_color: Color
    water_color: Color

    @property
    def display_name(self) -> str:
        return self.name or "Main region"


DEFAULT_SUBREGION = Subregion(
    "",
    to_color(_DEFAULT_BACKGROUND),
    to_color(_DEFAULT_WATER),
)


@dataclass
class ColorDatabase:
    """Named colors plus the subregion list of one region."""

    colors: dict[str, Color] = field(default_factory=dict)
    subregions: list[Subregion] = field(default_factory=lambda: [DEFAULT_SUBREGION])

    def get_color(self, key: str, default: Optional[Color] = None) -> Color:
        """Named color lookup, falling back to *default* then NEUTRAL_COLOR."""
        color = self.colors.get(key)
        if color is not None:
            return color
        return default if default is not None else NEUTRAL_COLOR

    def get_region_color(self, region_id: str, default: Optional[Color] = None) -> Color:
        return self.get_color(f"reg_{region_id}", default)

    def get_acid_color(self, region_id: str) -> Optional[Color]:
        return self.colors.get(f"reg_{region_id}_acid")

    def get_subregion(self, name: str) -> Subregion:
        """Subregion by name.

        Raises:
            KeyError: If no subregion has that name.
        """
        for subregion in self.subregions:
            if subregion.name == name:
                return subregion
        raise KeyError(f"Unknown subregion: {name!r}")


DEFAULT_ACID_COLOR = to_color(_DEFAULT_ACID)


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_subregion(data: dict) -> Subregion:
    return Subregion(
        name=str(data.get("name", "")),
        background_color=to_color(data.get("background", _DEFAULT_BACKGROUND)),
        water_color=to_color(data.get("water", _DEFAULT_WATER)),
    )


def parse_palette(data: Optional[dict]) -> ColorDatabase:
    """Build a ColorDatabase from a parsed YAML mapping."""
    if not data:
        return ColorDatabase()
    colors = {str(k): to_color(v) for k, v in (data.get("colors") or {}).items()}
    subregions = [_parse_subregion(s) for s in data.get("subregions") or []]
    if not subregions:
        subregions = [DEFAULT_SUBREGION]
    return ColorDatabase(colors=colors, subregions=subregions)


def load_palette(path: Path) -> ColorDatabase:
    """Load a palette YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return parse_palette(data)
