"""cornifer/shortcuts.py — Shortcut tunnel tracing.

Walks tunnel chains over the tile grid to find where each shortcut entrance
and room exit leads. Neighbor scan order is fixed (up, right, down, left) and
the first match wins, so traced paths are reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cornifer.tiles import DIRECTIONS, Point, ShortcutType, TerrainType, TileGrid


@dataclass(frozen=True)
class Shortcut:
    """A traced chain from an entrance tile to its terminal tile."""

    entrance: Point
    target: Point
    type: ShortcutType


# ---------------------------------------------------------------------------
# Tracing
# ---------------------------------------------------------------------------

def trace_shortcut(
    grid: TileGrid,
    start: Point,
    turns: Optional[list[Point]] = None,
) -> Point:
    """Follow the tunnel starting at *start* and return its terminal cell.

    Straight runs over Normal tunnel tiles are followed without rescanning.
    Any other shortcut tile ends the trace on that tile. When no neighbor
    continues the tunnel the trace stops where it is (a dead end).

    If *turns* is given, every cell where the committed direction changes
    is appended to it. The grid is never modified.
    """
    pos = start
    last = start
    direction: Optional[int] = None
    # A closed tunnel loop would otherwise never end.
    steps_left = 4 * grid.width * grid.height + 4

    while steps_left > 0:
        steps_left -= 1
        if direction is not None:
            dx, dy = DIRECTIONS[direction]
            nx, ny = pos[0] + dx, pos[1] + dy
            if grid.in_bounds(nx, ny):
                shortcut = grid.get(nx, ny).shortcut
                if shortcut == ShortcutType.NORMAL:
                    last = pos
                    pos = (nx, ny)
                    continue
                if shortcut != ShortcutType.NONE:
                    return (nx, ny)

        found = False
        for j, (dx, dy) in enumerate(DIRECTIONS):
            candidate = (pos[0] + dx, pos[1] + dy)
            if candidate == last or not grid.in_bounds(*candidate):
                continue
            shortcut = grid.get(*candidate).shortcut
            if shortcut == ShortcutType.NORMAL:
                if direction is not None and turns is not None:
                    turns.append(pos)
                direction = j
                found = True
                break
            if shortcut != ShortcutType.NONE:
                return candidate
        if not found:
            return pos
    return pos


def trace_path(grid: TileGrid, start: Point) -> list[Point]:
    """Polyline of a tunnel: start, every turn point, then the terminal."""
    turns: list[Point] = []
    end = trace_shortcut(grid, start, turns)
    return [start, *turns, end]


def classify(grid: TileGrid, target: Point) -> ShortcutType:
    """Shortcut type of a traced chain, judged by its terminal tile.

    A chain that ends on a bare Normal tunnel tile (not an entrance) is
    incomplete and classified as NONE.
    """
    tile = grid.get(*target)
    if tile.shortcut == ShortcutType.NORMAL and tile.terrain != TerrainType.SHORTCUT_ENTRANCE:
        return ShortcutType.NONE
    return tile.shortcut


def trace_room(grid: TileGrid) -> tuple[list[Shortcut], list[Point]]:
    """Trace every entrance and room exit in the grid.

    Returns:
        (shortcuts, exits) where shortcuts has one entry per
        ShortcutEntrance tile and exits holds the traced terminal of every
        RoomExit tile, both in row-major scan order.
    """
    entrances: list[Point] = []
    exit_tiles: list[Point] = []
    for x, y in grid.positions():
        tile = grid.get(x, y)
        if tile.terrain == TerrainType.SHORTCUT_ENTRANCE:
            entrances.append((x, y))
        if tile.shortcut == ShortcutType.ROOM_EXIT:
            exit_tiles.append((x, y))

    exits = [trace_shortcut(grid, pos) for pos in exit_tiles]

    shortcuts = []
    for entrance in entrances:
        target = trace_shortcut(grid, entrance)
        shortcuts.append(Shortcut(entrance, target, classify(grid, target)))
    return shortcuts, exits
