"""cornifer/level.py — Level text parsing: header, tile grid, settings.

Parses the line-oriented room format into a :class:`TileGrid` plus the
header fields and a canonical data string that keeps only the lines needed
to rebuild the room. Parsing is defensive: malformed input falls back to
defaults and never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from cornifer.constants import (
    CANONICAL_LINES,
    DEFAULT_WATER_LEVEL,
    HEADER_LINE,
    TILES_LINE,
)
from cornifer.tiles import ShortcutType, TerrainType, Tile, TileAttributes, TileGrid

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tile code table
# ---------------------------------------------------------------------------

# Sub-token code → attribute flag
ATTRIBUTE_CODES: dict[str, TileAttributes] = {
    "1": TileAttributes.VERTICAL_BEAM,
    "2": TileAttributes.HORIZONTAL_BEAM,
    "6": TileAttributes.WALL_BEHIND,
    "7": TileAttributes.HIVE,
    "8": TileAttributes.WATERFALL,
    "10": TileAttributes.GARBAGE_HOLE,
    "11": TileAttributes.WORM_GRASS,
}

# Sub-token code → shortcut type ("3" only applies to tiles with no shortcut yet)
SHORTCUT_CODES: dict[str, ShortcutType] = {
    "3": ShortcutType.NORMAL,
    "4": ShortcutType.ROOM_EXIT,
    "5": ShortcutType.CREATURE_HOLE,
    "9": ShortcutType.NPC_TRANSPORTATION,
    "12": ShortcutType.REGION_TRANSPORTATION,
}


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Effect:
    """Environmental modifier from the settings ``Effects`` record."""

    name: str
    amount: float


@dataclass
class Header:
    width: int = 0
    height: int = 0
    water_level: int = DEFAULT_WATER_LEVEL
    water_in_front: bool = False


@dataclass
class LevelData:
    """Everything read from a room's level text."""

    header: Header
    grid: TileGrid
    tiles_loaded: bool
    data_string: str


@dataclass
class Settings:
    """Records read from a room's settings text."""

    effects: list[Effect] = field(default_factory=list)
    placed_objects: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_header(line: Optional[str]) -> Header:
    """Parse ``W*H|waterLevel|waterInFront``; bad segments keep defaults."""
    header = Header()
    if line is None:
        return header

    parts = line.split("|")
    size = parts[0].split("*")
    width = _parse_int(size[0])
    if width is not None:
        header.width = width
    if len(size) > 1:
        height = _parse_int(size[1])
        if height is not None:
            header.height = height

    if len(parts) > 1:
        water = _parse_int(parts[1])
        if water is not None:
            header.water_level = DEFAULT_WATER_LEVEL if water < 0 else water
    if len(parts) > 2:
        header.water_in_front = parts[2].strip() == "1"
    return header


def find_tiles_line(lines: list[str], tile_count: int) -> Optional[str]:
    """Return the tile-data line, or None if no line qualifies.

    Prefers the fixed line index; otherwise takes the last line whose ``|``
    count is within one of *tile_count*.
    """
    if len(lines) > TILES_LINE:
        return lines[TILES_LINE]
    for line in reversed(lines):
        if tile_count - 1 <= line.count("|") <= tile_count + 1:
            return line
    return None


def parse_tile(token: str) -> Tile:
    """Parse one ``terrain,code,code...`` token. Unknown codes are ignored."""
    tile = Tile()
    parts = token.split(",")

    terrain = _parse_int(parts[0])
    if terrain is not None:
        try:
            tile.terrain = TerrainType(terrain)
        except ValueError:
            logger.debug("unknown terrain code %d", terrain)

    for code in parts[1:]:
        code = code.strip()
        flag = ATTRIBUTE_CODES.get(code)
        if flag is not None:
            tile.attributes |= flag
            continue
        shortcut = SHORTCUT_CODES.get(code)
        if shortcut is None:
            continue
        if shortcut == ShortcutType.NORMAL and tile.shortcut != ShortcutType.NONE:
            continue
        tile.shortcut = shortcut
    return tile


def parse_tiles(line: str, width: int, height: int) -> TileGrid:
    """Fill a grid column by column from a ``|``-delimited tile line."""
    grid = TileGrid.empty(width, height)
    x = y = 0
    for token in line.split("|"):
        if not token or not grid.in_bounds(x, y):
            continue
        grid.set(x, y, parse_tile(token))
        y += 1
        if y >= grid.height:
            x += 1
            y = 0
    return grid


def canonical_data_string(lines: list[str], tiles_line: Optional[str]) -> str:
    """Blank every non-essential line, keeping the header and tile lines."""
    lines = list(lines)
    if len(lines) <= TILES_LINE:
        lines.extend([""] * (TILES_LINE + 1 - len(lines)))
    if tiles_line is not None:
        lines[TILES_LINE] = tiles_line
    for i in range(len(lines)):
        if i not in CANONICAL_LINES:
            lines[i] = ""
    return "\n".join(lines)


def parse_level(
    data: str,
    name: str = "",
    errors: Optional[list[str]] = None,
) -> LevelData:
    """Parse raw level text.

    Args:
        data: The level file contents.
        name: Room name, used in error messages.
        errors: Caller-owned list; a message is appended when no tile data
            can be found.

    Returns:
        LevelData. When the tile line is missing the grid is all Air and
        ``tiles_loaded`` is False.
    """
    lines = data.split("\n")
    header_line = lines[HEADER_LINE] if len(lines) > HEADER_LINE else None
    header = parse_header(header_line)
    if header_line is None:
        logger.debug("room %s has no header line", name)

    tiles_line = find_tiles_line(lines, header.width * header.height)
    if tiles_line is None:
        message = f"Could not find tile data for room {name}"
        logger.warning(message)
        if errors is not None:
            errors.append(message)
        grid = TileGrid.empty(header.width, header.height)
    else:
        grid = parse_tiles(tiles_line, header.width, header.height)

    return LevelData(
        header=header,
        grid=grid,
        tiles_loaded=tiles_line is not None,
        data_string=canonical_data_string(lines, tiles_line),
    )


def parse_effect(text: str) -> Optional[Effect]:
    """Parse ``name-amount-?-?``; anything but four segments is dropped."""
    parts = text.split("-")
    if len(parts) != 4:
        return None
    try:
        amount = float(parts[1])
    except ValueError:
        amount = 0.0
    return Effect(parts[0], amount)


def parse_settings(settings: Optional[str]) -> Settings:
    """Parse ``Key: value`` records; only PlacedObjects and Effects are kept."""
    result = Settings()
    if settings is None:
        return result

    for line in settings.split("\n"):
        key, sep, value = line.strip().partition(":")
        if not sep:
            continue
        key = key.strip()
        items = [item.strip() for item in value.strip().split(",")]

        if key == "PlacedObjects":
            result.placed_objects = [item for item in items if item]
        elif key == "Effects":
            effects = []
            for item in items:
                effect = parse_effect(item)
                if effect is None:
                    if item:
                        logger.debug("dropping malformed effect %r", item)
                    continue
                effects.append(effect)
            result.effects = effects
    return result


def find_effect(effects: list[Effect], name: str) -> Optional[Effect]:
    """First effect named *name*, or None."""
    for effect in effects:
        if effect.name == name:
            return effect
    return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text.strip())
    except ValueError:
        return None
