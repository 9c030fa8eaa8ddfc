"""Tests for cornifer/tiles.py — tile value type and grid access."""

from __future__ import annotations

import pytest

from cornifer.tiles import (
    DIRECTIONS,
    ShortcutType,
    TerrainType,
    Tile,
    TileAttributes,
    TileGrid,
)

from tests.rooms import grid_from_rows


# ---------------------------------------------------------------------------
# TestTile
# ---------------------------------------------------------------------------

class TestTile:
    def test_defaults_are_air(self):
        tile = Tile()
        assert tile.terrain == TerrainType.AIR
        assert tile.shortcut == ShortcutType.NONE
        assert tile.attributes == TileAttributes.NONE
        assert not tile.is_solid

    def test_direction_order_is_up_right_down_left(self):
        assert DIRECTIONS == ((0, -1), (1, 0), (0, 1), (-1, 0))


# ---------------------------------------------------------------------------
# TestTileGrid
# ---------------------------------------------------------------------------

class TestTileGrid:
    def test_empty_grid_is_all_air(self):
        grid = TileGrid.empty(4, 3)
        assert len(grid.cells) == 12
        assert all(t.terrain == TerrainType.AIR for t in grid.cells)

    def test_negative_size_clamps_to_zero(self):
        grid = TileGrid.empty(-3, 5)
        assert grid.size == (0, 5)
        assert grid.cells == []

    def test_wrong_cell_count_rejected(self):
        with pytest.raises(ValueError):
            TileGrid(2, 2, [Tile()])

    def test_column_major_index(self):
        grid = TileGrid.empty(3, 4)
        assert grid.index(0, 0) == 0
        assert grid.index(0, 3) == 3
        assert grid.index(1, 0) == 4
        assert grid.index(2, 1) == 9

    def test_get_clamps_out_of_range(self):
        grid = grid_from_rows([
            "#.",
            "._",
        ])
        assert grid.get(-5, -5).terrain == TerrainType.SOLID
        assert grid.get(10, 10).terrain == TerrainType.FLOOR
        assert grid.get(10, 0).terrain == TerrainType.AIR

    def test_get_on_empty_grid_raises(self):
        grid = TileGrid.empty(5, 0)
        with pytest.raises(IndexError):
            grid.get(0, 0)

    def test_set_out_of_bounds_raises(self):
        grid = TileGrid.empty(2, 2)
        with pytest.raises(IndexError):
            grid.set(2, 0, Tile())

    def test_out_of_bounds_counts_as_solid(self):
        grid = TileGrid.empty(2, 2)
        assert grid.is_solid(-1, 0)
        assert grid.is_solid(0, 2)
        assert not grid.is_solid(1, 1)

    def test_solid_neighbors(self):
        grid = grid_from_rows([
            "###",
            "#.#",
            "#..",
        ])
        assert grid.solid_neighbors(1, 1) == 3
        # Corner: two out-of-bounds sides plus the solid tile above
        assert grid.solid_neighbors(2, 2) == 3
        assert grid.solid_neighbors(0, 0) == 4

    def test_positions_row_major(self):
        grid = TileGrid.empty(2, 2)
        assert list(grid.positions()) == [(0, 0), (1, 0), (0, 1), (1, 1)]
