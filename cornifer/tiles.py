"""cornifer/tiles.py — Tile value type and the fixed-size room tile grid.

Tiles are stored in a flat, column-major list (``x * height + y``), which is
the order the level text lists them in. Every lookup goes through the grid so
neighbor math works on uniform strides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Iterator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TerrainType(IntEnum):
    AIR = 0
    SOLID = 1
    SLOPE = 2
    FLOOR = 3
    SHORTCUT_ENTRANCE = 4


class ShortcutType(IntEnum):
    NONE = 0
    NORMAL = 1
    ROOM_EXIT = 2
    CREATURE_HOLE = 3
    NPC_TRANSPORTATION = 4
    REGION_TRANSPORTATION = 5


class TileAttributes(IntFlag):
    NONE = 0
    VERTICAL_BEAM = 1
    HORIZONTAL_BEAM = 2
    WALL_BEHIND = 4
    HIVE = 8
    WATERFALL = 16
    GARBAGE_HOLE = 32
    WORM_GRASS = 64


BEAMS = TileAttributes.VERTICAL_BEAM | TileAttributes.HORIZONTAL_BEAM

# Cardinal directions in trace order: up, right, down, left.
DIRECTIONS: tuple[tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

Point = tuple[int, int]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Tile:
    """One grid cell: terrain, shortcut wiring, and attribute flags."""

    terrain: TerrainType = TerrainType.AIR
    shortcut: ShortcutType = ShortcutType.NONE
    attributes: TileAttributes = TileAttributes.NONE

    @property
    def is_solid(self) -> bool:
        return self.terrain == TerrainType.SOLID


@dataclass
class TileGrid:
    """Fixed-size 2-D tile array with clamped access.

    ``cells`` is column-major: index ``x * height + y``. Construct with
    :meth:`empty` unless you already have a correctly sized cell list.
    """

    width: int
    height: int
    cells: list[Tile] = field(default_factory=list)

    @classmethod
    def empty(cls, width: int, height: int) -> TileGrid:
        width = max(0, width)
        height = max(0, height)
        return cls(width, height, [Tile() for _ in range(width * height)])

    def __post_init__(self) -> None:
        if len(self.cells) != self.width * self.height:
            raise ValueError(
                f"TileGrid {self.width}x{self.height} needs "
                f"{self.width * self.height} cells, got {len(self.cells)}"
            )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def index(self, x: int, y: int) -> int:
        return x * self.height + y

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Tile:
        """Return the tile at (x, y), clamping both indices into the grid.

        Raises:
            IndexError: If the grid has no cells.
        """
        if not self.cells:
            raise IndexError(f"get({x}, {y}) on empty {self.width}x{self.height} grid")
        x = min(max(x, 0), self.width - 1)
        y = min(max(y, 0), self.height - 1)
        return self.cells[self.index(x, y)]

    def set(self, x: int, y: int, tile: Tile) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height} grid")
        self.cells[self.index(x, y)] = tile

    def is_solid(self, x: int, y: int) -> bool:
        """Solid test where anything outside the grid counts as solid."""
        if not self.in_bounds(x, y):
            return True
        return self.cells[self.index(x, y)].is_solid

    def solid_neighbors(self, x: int, y: int) -> int:
        """Count solid 4-neighbors of (x, y); out-of-bounds counts as solid."""
        return (
            self.is_solid(x - 1, y)
            + self.is_solid(x + 1, y)
            + self.is_solid(x, y - 1)
            + self.is_solid(x, y + 1)
        )

    def positions(self) -> Iterator[Point]:
        """Yield every (x, y) row by row, left to right."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y
