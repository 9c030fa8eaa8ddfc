"""cornifer/rasterizer.py — Tiles, palette and water level to an RGBA bitmap.

One pixel per tile. The output is a ``(height, width, 4)`` uint8 array.
Caching and dirty tracking belong to the owning :class:`~cornifer.room.Room`;
this module only computes.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from cornifer.config import RenderOptions
from cornifer.constants import (
    DEATHPIT_ROWS,
    EFFECT_INVERTED_WATER,
    EFFECT_WATER_FLUX_MAX,
    EFFECT_WATER_FLUX_MIN,
    GRAY_BEAM,
    GRAY_FLOOR,
    GRAY_OPEN,
    GRAY_SLOPE,
    GRAY_SOLID,
    GRAY_WALL,
    WATER_FLUX_OFFSET,
    WATER_FLUX_SCALE,
)
from cornifer.level import Effect, find_effect
from cornifer.palette import BLACK, RED, TRANSPARENT, Color, Subregion
from cornifer.shortcuts import Shortcut
from cornifer.tiles import BEAMS, ShortcutType, TerrainType, TileAttributes, TileGrid


# ---------------------------------------------------------------------------
# Scratch buffers
# ---------------------------------------------------------------------------

class BufferPool:
    """Reusable float scratch buffers, so repeated rebuilds don't reallocate."""

    def __init__(self) -> None:
        self._free: list[np.ndarray] = []

    def rent(self, size: int) -> np.ndarray:
        """Return a flat float buffer with at least *size* elements."""
        for i, buf in enumerate(self._free):
            if buf.size >= size:
                return self._free.pop(i)
        return np.empty(max(size, 1), dtype=np.float32)

    def give_back(self, buf: np.ndarray) -> None:
        self._free.append(buf)

    def __len__(self) -> int:
        return len(self._free)


SHARED_POOL = BufferPool()


# ---------------------------------------------------------------------------
# Water level
# ---------------------------------------------------------------------------

def effective_water_level(water_level: int, effects: Sequence[Effect], height: int) -> int:
    """Water level used for drawing.

    A negative declared level is replaced by the midpoint of the
    WaterFluxMinLevel/WaterFluxMaxLevel effects when both exist.
    """
    if water_level >= 0:
        return water_level
    flux_min = find_effect(list(effects), EFFECT_WATER_FLUX_MIN)
    flux_max = find_effect(list(effects), EFFECT_WATER_FLUX_MAX)
    if flux_min is None or flux_max is None:
        return water_level
    mid = 1 - (flux_max.amount + flux_min.amount) / 2 * WATER_FLUX_SCALE
    return int(mid * height) + WATER_FLUX_OFFSET


def submerged_rows(water_level: int, height: int, inverted: bool) -> np.ndarray:
    """Bool column vector (height, 1): rows under water."""
    rows = np.arange(height).reshape(height, 1)
    if inverted:
        return rows <= water_level
    return rows >= height - water_level


# ---------------------------------------------------------------------------
# Rasterization
# ---------------------------------------------------------------------------

def tile_arrays(grid: TileGrid) -> tuple[np.ndarray, np.ndarray]:
    """Terrain codes and attribute bits as (height, width) int arrays."""
    terrain = np.array([int(t.terrain) for t in grid.cells], dtype=np.int16)
    attributes = np.array([int(t.attributes) for t in grid.cells], dtype=np.int16)
    shape = (grid.width, grid.height)
    return terrain.reshape(shape).T, attributes.reshape(shape).T


def gray_levels(
    terrain: np.ndarray,
    attributes: np.ndarray,
    options: RenderOptions,
) -> np.ndarray:
    """Per-tile interpolation factor between black and the background."""
    gray = np.full(terrain.shape, GRAY_OPEN, dtype=np.float32)
    solid = terrain == TerrainType.SOLID
    floor = terrain == TerrainType.FLOOR
    slope = terrain == TerrainType.SLOPE
    gray[solid] = GRAY_SOLID
    gray[floor] = GRAY_FLOOR
    gray[slope] = GRAY_SLOPE
    if options.draw_tile_walls:
        walls = (attributes & int(TileAttributes.WALL_BEHIND)) != 0
        gray[walls & ~(solid | floor | slope)] = GRAY_WALL

    beams = ((attributes & int(BEAMS)) != 0) & ~solid
    if options.region_bg_shortcuts:
        entrance = terrain == TerrainType.SHORTCUT_ENTRANCE
        gray[entrance] = GRAY_OPEN
        beams &= ~entrance
    gray[beams] = GRAY_BEAM
    return gray


def rasterize(
    grid: TileGrid,
    subregion: Subregion,
    *,
    water_level: int = -1,
    effects: Sequence[Effect] = (),
    cutouts: Optional[np.ndarray] = None,
    shortcuts: Sequence[Shortcut] = (),
    deathpit: bool = False,
    acid_color: Optional[Color] = None,
    options: Optional[RenderOptions] = None,
    pool: BufferPool = SHARED_POOL,
) -> np.ndarray:
    """Render *grid* to a new ``(height, width, 4)`` uint8 RGBA array.

    Args:
        grid: Room tiles.
        subregion: Background and water colors.
        water_level: Declared water level in rows from the bottom; negative
            means none (see :func:`effective_water_level`).
        effects: Room effects; InvertedWater flips the submerged side.
        cutouts: Optional (height, width) mask of hidden tiles.
        shortcuts: Traced shortcuts, used for the marker overlay.
        deathpit: Fade the bottom rows of open-bottomed columns to black.
        acid_color: Replaces the subregion water color when given.
        options: Map-wide render switches.
        pool: Scratch buffer pool.
    """
    if options is None:
        options = RenderOptions()
    width, height = grid.width, grid.height
    if width == 0 or height == 0:
        return np.zeros((height, width, 4), dtype=np.uint8)

    buf = pool.rent(width * height * 4)
    try:
        colors = buf[: width * height * 4].reshape(height, width, 4)
        terrain, attributes = tile_arrays(grid)
        solid = terrain == TerrainType.SOLID

        gray = gray_levels(terrain, attributes, options)
        background = np.asarray(subregion.background_color, dtype=np.float32)
        black = np.asarray(BLACK, dtype=np.float32)
        colors[:] = black + (background - black) * gray[..., None]

        inverted = find_effect(list(effects), EFFECT_INVERTED_WATER) is not None
        level = effective_water_level(water_level, effects, height)
        water = np.asarray(acid_color or subregion.water_color, dtype=np.float32)
        wet = submerged_rows(level, height, inverted) & ~solid
        t = options.water_transparency
        colors[wet] = water + (colors[wet] - water) * t

        if deathpit:
            open_bottom = terrain[height - 1] == TerrainType.AIR
            for y in range(max(height - DEATHPIT_ROWS, 0), height):
                fade = (height - y - 0.5) / DEATHPIT_ROWS
                row = colors[y, open_bottom]
                colors[y, open_bottom] = black + (row - black) * fade

        if cutouts is not None and not options.disable_cropping:
            colors[cutouts] = TRANSPARENT

        if options.mark_shortcuts:
            for shortcut in shortcuts:
                if shortcut.type == ShortcutType.NONE:
                    continue
                if options.mark_exits_only and shortcut.type != ShortcutType.ROOM_EXIT:
                    continue
                x, y = shortcut.entrance
                colors[y, x] = RED

        return np.clip(np.rint(colors), 0, 255).astype(np.uint8)
    finally:
        pool.give_back(buf)
