"""cornifer/cutout.py — Decide which solid tiles can be hidden from the map.

Two modes:

* cut all solid: every Solid tile is hidden.
* boundary flood: solid rock is eaten inward from the grid edge. With the
  better-cutout refinement a tile is kept when an opening on both sides of
  it (within range) shows it is a thin wall between two open areas.

The mask is a ``(height, width)`` bool array; True means hidden.
"""

from __future__ import annotations

from collections import deque

import numpy as np

from cornifer.constants import CUTOUT_MAX_DISTANCE, CUTOUT_SEARCH_DISTANCE
from cornifer.tiles import Point, TileGrid


def cut_all_solid(grid: TileGrid) -> np.ndarray:
    """Mask of exactly the Solid tiles."""
    mask = np.zeros((grid.height, grid.width), dtype=bool)
    for x, y in grid.positions():
        if grid.is_solid(x, y):
            mask[y, x] = True
    return mask


def edge_cells(width: int, height: int) -> list[Point]:
    """Border cells in flood seed order: top, left, right, bottom."""
    cells: list[Point] = []
    if width <= 0 or height <= 0:
        return cells
    cells.extend((x, 0) for x in range(width - 1))
    cells.extend((0, y) for y in range(1, height))
    cells.extend((width - 1, y) for y in range(height - 1))
    cells.extend((x, height - 1) for x in range(1, width))
    return cells


class CutoutFlood:
    """Boundary flood-fill over one grid.

    ``cut`` holds hidden tiles; ``protected`` holds solid tiles currently
    known to separate two nearby openings. Protection along a row and column
    is lifted whenever a tile in them is cut, so those tiles get re-checked
    when the flood reaches them again.
    """

    def __init__(self, grid: TileGrid, better_cutout: bool = True) -> None:
        self.grid = grid
        self.better_cutout = better_cutout
        self.cut = np.zeros((grid.height, grid.width), dtype=bool)
        self.protected = np.zeros((grid.height, grid.width), dtype=bool)
        self.queue: deque[Point] = deque(edge_cells(grid.width, grid.height))

    def run(self) -> np.ndarray:
        grid = self.grid
        while self.queue:
            x, y = self.queue.popleft()
            if self.cut[y, x] or self.protected[y, x]:
                continue

            if not grid.is_solid(x, y):
                if grid.solid_neighbors(x, y) == 3:
                    self._cut_pockets(x, y)
                continue

            if self.try_cut(x, y):
                self._enqueue_neighbors(x, y)
        return self.cut

    # -- cutting -----------------------------------------------------------

    def try_cut(self, x: int, y: int) -> bool:
        """Cut solid tile (x, y) unless it is visibly separating openings."""
        if not self.grid.in_bounds(x, y) or self.cut[y, x] or self.protected[y, x]:
            return False
        if self.better_cutout and (self._protect_row(x, y) or self._protect_column(x, y)):
            return False
        self._mark_cut(x, y)
        return True

    def _cut_pockets(self, x: int, y: int) -> None:
        # Open tile walled in on three sides: the solid neighbors that are
        # themselves walled in on three sides go without a visibility check.
        for nx, ny in ((x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)):
            if not self.grid.in_bounds(nx, ny) or self.cut[ny, nx]:
                continue
            if self.grid.is_solid(nx, ny) and self.grid.solid_neighbors(nx, ny) == 3:
                self._mark_cut(nx, ny)
                self._enqueue_neighbors(nx, ny)

    def _mark_cut(self, x: int, y: int) -> None:
        self.cut[y, x] = True
        self.protected[y, :] = False
        self.protected[:, x] = False

    def _enqueue_neighbors(self, x: int, y: int) -> None:
        grid = self.grid
        if x > 0:
            self.queue.append((x - 1, y))
        if x < grid.width - 1:
            self.queue.append((x + 1, y))
        if y > 0:
            self.queue.append((x, y - 1))
        if y < grid.height - 1:
            self.queue.append((x, y + 1))

    # -- visibility scans --------------------------------------------------

    def _protect_row(self, x: int, y: int) -> bool:
        span = self._find_openings(
            x, self.grid.width,
            lambda i: self.cut[y, i],
            lambda i: self.grid.is_solid(i, y),
        )
        if span is None:
            return False
        low, high = span
        self.protected[y, low + 1:high] = True
        return True

    def _protect_column(self, x: int, y: int) -> bool:
        span = self._find_openings(
            y, self.grid.height,
            lambda i: self.cut[i, x],
            lambda i: self.grid.is_solid(x, i),
        )
        if span is None:
            return False
        low, high = span
        self.protected[low + 1:high, x] = True
        return True

    @staticmethod
    def _find_openings(center, length, is_cut, is_solid) -> tuple[int, int] | None:
        """Nearest open tiles on both sides of *center* along one axis.

        Walks backward until the first open tile, then forward from the
        center. Cut tiles end a walk. Returns (low, high) when both openings
        exist and at least one is within the soft search distance.
        """
        for low in range(center - 1, max(center - CUTOUT_MAX_DISTANCE, 0) - 1, -1):
            if is_cut(low):
                return None
            if is_solid(low):
                continue
            low_far = low < center - CUTOUT_SEARCH_DISTANCE
            for high in range(center + 1, min(center + CUTOUT_MAX_DISTANCE, length)):
                if is_cut(high):
                    return None
                if is_solid(high):
                    continue
                if low_far and high > center + CUTOUT_SEARCH_DISTANCE:
                    return None
                return low, high
            return None
        return None


def compute_cutouts(
    grid: TileGrid,
    cut_all: bool = False,
    better_cutout: bool = True,
) -> np.ndarray:
    """Build the hide mask for *grid*.

    Args:
        grid: Room tiles.
        cut_all: Hide every Solid tile instead of flooding from the edge.
        better_cutout: Keep thin walls that separate nearby open areas.
    """
    if cut_all:
        return cut_all_solid(grid)
    return CutoutFlood(grid, better_cutout).run()
