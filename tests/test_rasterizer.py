"""Tests for cornifer/rasterizer.py — tile map colors, water, markers."""

from __future__ import annotations

import numpy as np
import pytest

from cornifer.config import RenderOptions
from cornifer.level import Effect
from cornifer.palette import Subregion
from cornifer.rasterizer import (
    BufferPool,
    effective_water_level,
    rasterize,
    submerged_rows,
)
from cornifer.shortcuts import Shortcut
from cornifer.tiles import ShortcutType, TileGrid

from tests.rooms import grid_from_rows


# Chosen so every blended channel lands well away from a .5 rounding edge.
SUBREGION = Subregion("Test", (200, 100, 0, 255), (0, 0, 200, 255))


def px(image: np.ndarray, x: int, y: int) -> tuple[int, ...]:
    return tuple(int(c) for c in image[y, x])


# ---------------------------------------------------------------------------
# TestGrayLevels
# ---------------------------------------------------------------------------

class TestGrayLevels:
    def test_terrain_shades(self):
        grid = grid_from_rows(["#_/.|"])
        image = rasterize(grid, SUBREGION)
        assert px(image, 0, 0) == (0, 0, 0, 255)
        assert px(image, 1, 0) == (70, 35, 0, 255)
        assert px(image, 2, 0) == (80, 40, 0, 255)
        assert px(image, 3, 0) == (200, 100, 0, 255)
        assert px(image, 4, 0) == (70, 35, 0, 255)

    def test_wall_behind_needs_option(self):
        grid = grid_from_rows(["w"])
        assert px(rasterize(grid, SUBREGION), 0, 0) == (200, 100, 0, 255)
        walls = RenderOptions(draw_tile_walls=True)
        assert px(rasterize(grid, SUBREGION, options=walls), 0, 0) == (150, 75, 0, 255)

    def test_region_background_shortcut_entrances(self):
        grid = grid_from_rows(["E"])
        options = RenderOptions(region_bg_shortcuts=True)
        assert px(rasterize(grid, SUBREGION, options=options), 0, 0) == (200, 100, 0, 255)

    def test_output_shape_and_dtype(self):
        image = rasterize(TileGrid.empty(7, 3), SUBREGION)
        assert image.shape == (3, 7, 4)
        assert image.dtype == np.uint8

    def test_empty_grid(self):
        assert rasterize(TileGrid.empty(0, 0), SUBREGION).shape == (0, 0, 4)


# ---------------------------------------------------------------------------
# TestCutouts
# ---------------------------------------------------------------------------

class TestCutouts:
    def test_cut_tiles_transparent(self):
        grid = grid_from_rows(["#."])
        mask = np.array([[True, False]])
        image = rasterize(grid, SUBREGION, cutouts=mask)
        assert px(image, 0, 0) == (0, 0, 0, 0)
        assert px(image, 1, 0) == (200, 100, 0, 255)

    def test_disable_cropping_keeps_tiles(self):
        grid = grid_from_rows(["#."])
        mask = np.array([[True, False]])
        options = RenderOptions(disable_cropping=True)
        image = rasterize(grid, SUBREGION, cutouts=mask, options=options)
        assert px(image, 0, 0) == (0, 0, 0, 255)


# ---------------------------------------------------------------------------
# TestWater
# ---------------------------------------------------------------------------

class TestWater:
    def test_bottom_rows_tinted(self):
        grid = TileGrid.empty(2, 5)
        image = rasterize(grid, SUBREGION, water_level=2)
        for y in range(3):
            assert px(image, 0, y) == (200, 100, 0, 255)
        for y in (3, 4):
            assert px(image, 0, y) == (60, 30, 140, 255)

    def test_solid_tiles_not_tinted(self):
        grid = grid_from_rows([".", "#"])
        image = rasterize(grid, SUBREGION, water_level=2)
        assert px(image, 0, 1) == (0, 0, 0, 255)
        assert px(image, 0, 0) == (60, 30, 140, 255)

    def test_no_water(self):
        image = rasterize(TileGrid.empty(1, 4), SUBREGION, water_level=-1)
        assert (image[..., :3] == (200, 100, 0)).all()

    def test_inverted_water_floods_top(self):
        grid = TileGrid.empty(1, 5)
        effects = [Effect("InvertedWater", 1.0)]
        image = rasterize(grid, SUBREGION, water_level=2, effects=effects)
        for y in range(3):
            assert px(image, 0, y) == (60, 30, 140, 255)
        for y in (3, 4):
            assert px(image, 0, y) == (200, 100, 0, 255)

    def test_acid_color_replaces_water(self):
        grid = TileGrid.empty(1, 2)
        image = rasterize(grid, SUBREGION, water_level=1, acid_color=(0, 200, 0, 255))
        assert px(image, 0, 1) == (60, 170, 0, 255)

    def test_transparency_option(self):
        grid = TileGrid.empty(1, 1)
        options = RenderOptions(water_transparency=0.0)
        image = rasterize(grid, SUBREGION, water_level=1, options=options)
        assert px(image, 0, 0) == (0, 0, 200, 255)

    def test_flux_midpoint(self):
        effects = [Effect("WaterFluxMinLevel", 0.2), Effect("WaterFluxMaxLevel", 0.4)]
        assert effective_water_level(-1, effects, 10) == 8

    def test_flux_needs_both_effects(self):
        assert effective_water_level(-1, [Effect("WaterFluxMinLevel", 0.2)], 10) == -1

    def test_declared_level_wins_over_flux(self):
        effects = [Effect("WaterFluxMinLevel", 0.2), Effect("WaterFluxMaxLevel", 0.4)]
        assert effective_water_level(3, effects, 10) == 3

    def test_submerged_rows(self):
        assert submerged_rows(2, 5, False).ravel().tolist() == [False, False, False, True, True]
        assert submerged_rows(2, 5, True).ravel().tolist() == [True, True, True, False, False]


# ---------------------------------------------------------------------------
# TestDeathpit
# ---------------------------------------------------------------------------

class TestDeathpit:
    def test_open_columns_fade(self):
        rows = [".."] * 4 + [".#"]
        grid = grid_from_rows(rows)
        image = rasterize(grid, SUBREGION, deathpit=True)
        # Five rows; fade = (5 - y - 0.5) / 5
        assert px(image, 0, 0) == (180, 90, 0, 255)
        assert px(image, 0, 4) == (20, 10, 0, 255)
        # Column with a solid bottom tile is untouched
        assert px(image, 1, 0) == (200, 100, 0, 255)

    def test_only_bottom_five_rows(self):
        grid = TileGrid.empty(1, 8)
        image = rasterize(grid, SUBREGION, deathpit=True)
        assert px(image, 0, 2) == (200, 100, 0, 255)
        assert px(image, 0, 3) == (180, 90, 0, 255)

    def test_off_by_default(self):
        image = rasterize(TileGrid.empty(1, 5), SUBREGION)
        assert px(image, 0, 4) == (200, 100, 0, 255)


# ---------------------------------------------------------------------------
# TestShortcutMarkers
# ---------------------------------------------------------------------------

class TestShortcutMarkers:
    SHORTCUTS = [
        Shortcut((0, 0), (2, 0), ShortcutType.NORMAL),
        Shortcut((1, 0), (2, 0), ShortcutType.ROOM_EXIT),
        Shortcut((2, 0), (2, 0), ShortcutType.NONE),
    ]

    def test_marked_red(self):
        options = RenderOptions(mark_shortcuts=True)
        image = rasterize(TileGrid.empty(3, 1), SUBREGION, shortcuts=self.SHORTCUTS, options=options)
        assert px(image, 0, 0) == (255, 0, 0, 255)
        assert px(image, 1, 0) == (255, 0, 0, 255)
        assert px(image, 2, 0) == (200, 100, 0, 255)

    def test_exits_only(self):
        options = RenderOptions(mark_shortcuts=True, mark_exits_only=True)
        image = rasterize(TileGrid.empty(3, 1), SUBREGION, shortcuts=self.SHORTCUTS, options=options)
        assert px(image, 0, 0) == (200, 100, 0, 255)
        assert px(image, 1, 0) == (255, 0, 0, 255)

    def test_unmarked_by_default(self):
        image = rasterize(TileGrid.empty(3, 1), SUBREGION, shortcuts=self.SHORTCUTS)
        assert px(image, 0, 0) == (200, 100, 0, 255)

    def test_marker_drawn_over_cutout(self):
        options = RenderOptions(mark_shortcuts=True)
        mask = np.array([[True, False, False]])
        image = rasterize(
            TileGrid.empty(3, 1), SUBREGION,
            cutouts=mask, shortcuts=self.SHORTCUTS, options=options,
        )
        assert px(image, 0, 0) == (255, 0, 0, 255)


# ---------------------------------------------------------------------------
# TestBufferPool
# ---------------------------------------------------------------------------

class TestBufferPool:
    def test_buffer_returned_after_render(self):
        pool = BufferPool()
        rasterize(TileGrid.empty(4, 4), SUBREGION, pool=pool)
        assert len(pool) == 1
        rasterize(TileGrid.empty(2, 2), SUBREGION, pool=pool)
        assert len(pool) == 1

    def test_buffer_returned_on_error(self):
        pool = BufferPool()
        bad_mask = np.zeros((9, 9), dtype=bool)
        with pytest.raises(IndexError):
            rasterize(TileGrid.empty(3, 3), SUBREGION, cutouts=bad_mask, pool=pool)
        assert len(pool) == 1

    def test_rent_reuses_large_enough_buffer(self):
        pool = BufferPool()
        buf = pool.rent(100)
        pool.give_back(buf)
        assert pool.rent(50) is buf
        assert len(pool) == 0

    def test_results_do_not_share_memory(self):
        pool = BufferPool()
        grid = TileGrid.empty(3, 3)
        first = rasterize(grid, SUBREGION, pool=pool)
        second = rasterize(grid, SUBREGION, water_level=3, pool=pool)
        assert not np.shares_memory(first, second)
        assert px(first, 0, 0) == (200, 100, 0, 255)
