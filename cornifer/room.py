"""cornifer/room.py — A loaded room: tiles, shortcuts, cutouts, cached tile map.

The room owns every derived artifact and the two dirty flags that guard them:

* ``cutouts_dirty``: set when the cutout mode changes or on load;
  cleared by :meth:`Room.process_cutouts`.
* ``tile_map_dirty``: set by any change to a rasterizer input; cleared by
  :meth:`Room.update_tile_map`.

Getters only rebuild when their flag is set.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Generic, Iterable, Optional, TypeVar

import numpy as np

from cornifer.config import RenderOptions
from cornifer.constants import EFFECT_LETHAL_WATER, PLAYABLE_SLUGCATS
from cornifer.cutout import compute_cutouts
from cornifer.level import Effect, find_effect, parse_level, parse_settings
from cornifer.map_object import MapObject, ObjectNode, TextMarker
from cornifer.palette import (
    DEFAULT_ACID_COLOR,
    DEFAULT_SUBREGION,
    Color,
    ColorDatabase,
    Subregion,
)
from cornifer.placement import Decoder, PlacedObject, decode_placed_object, resolve_placements
from cornifer.rasterizer import rasterize
from cornifer.shortcuts import Shortcut, trace_path, trace_room
from cornifer.tiles import Point, TerrainType, TileGrid

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Overridable properties
# ---------------------------------------------------------------------------

@dataclass
class RoomProperty(Generic[T]):
    """A parsed default that the user may override.

    Only overridden values are persisted.
    """

    key: str
    original: T
    override: Optional[T] = None
    has_override: bool = False

    @property
    def value(self) -> T:
        return self.override if self.has_override else self.original  # type: ignore[return-value]

    def set(self, value: T) -> None:
        self.override = value
        self.has_override = True

    def reset(self) -> None:
        self.override = None
        self.has_override = False

    def save(self, out: dict, encode=lambda v: v) -> None:
        if self.has_override:
            out[self.key] = encode(self.override)

    def load(self, data: dict, decode=lambda v: v) -> bool:
        value = data.get(self.key)
        if value is None:
            return False
        self.set(decode(value))
        return True


@dataclass
class GateData:
    """Karma requirements and region ids of a gate room."""

    left_karma: Optional[str] = None
    right_karma: Optional[str] = None
    left_region_id: Optional[str] = None
    right_region_id: Optional[str] = None
    target_region_name: Optional[str] = None

    def to_json(self) -> dict:
        return {
            "leftKarma": self.left_karma,
            "rightKarma": self.right_karma,
            "leftRegion": self.left_region_id,
            "rightRegion": self.right_region_id,
            "targetName": self.target_region_name,
        }

    @classmethod
    def from_json(cls, data: dict) -> GateData:
        return cls(
            left_karma=data.get("leftKarma"),
            right_karma=data.get("rightKarma"),
            left_region_id=data.get("leftRegion"),
            right_region_id=data.get("rightRegion"),
            target_region_name=data.get("targetName"),
        )


# ---------------------------------------------------------------------------
# Room
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Room(MapObject):
    """One room of a region, built from its level and settings text."""

    region_id: str = ""
    palette: ColorDatabase = field(default_factory=ColorDatabase)
    options: RenderOptions = field(default_factory=RenderOptions)

    is_gate: bool = False
    is_shelter: bool = False
    is_scavenger_trader: bool = False
    is_scavenger_outpost: bool = False
    broken_for: set[str] = field(default_factory=set)
    gate_data: Optional[GateData] = None

    def __post_init__(self) -> None:
        self.grid = TileGrid.empty(0, 0)
        self.water_in_front = False
        self.shortcuts: list[Shortcut] = []
        self.exits: list[Point] = []
        self.effects: list[Effect] = []
        self.placed_objects: list[PlacedObject] = []
        self.treasury_pos: Optional[tuple[float, float]] = None
        self.outpost_pos: Optional[tuple[float, float]] = None

        self.data_string: Optional[str] = None
        self.settings_string: Optional[str] = None
        self.loaded = False
        self.tiles_loaded = False

        self.water_level: RoomProperty[int] = RoomProperty("waterLevel", -1)
        default_subregion = self.palette.subregions[0] if self.palette.subregions else DEFAULT_SUBREGION
        self.subregion: RoomProperty[Subregion] = RoomProperty("subregion", default_subregion)
        self.deathpit: RoomProperty[bool] = RoomProperty("deathpit", False)
        self.better_cutout: RoomProperty[bool] = RoomProperty("betterTileCutout", True)
        self.cut_all_solid: RoomProperty[bool] = RoomProperty("cutAllSolid", False)
        self.draw_in_room_shortcuts: RoomProperty[bool] = RoomProperty("inRoomShortcuts", False)
        self.acid_water: RoomProperty[bool] = RoomProperty("acidWater", False)
        self.acid_color: RoomProperty[Color] = RoomProperty("acidColor", DEFAULT_ACID_COLOR)

        self.cutouts: Optional[np.ndarray] = None
        self.cutouts_dirty = True
        self.tile_map: Optional[np.ndarray] = None
        self.tile_map_dirty = False
        self.tile_map_options: Optional[RenderOptions] = None

    @property
    def size(self) -> tuple[float, float]:
        width, height = self.grid.size
        return (float(width), float(height))

    def __str__(self) -> str:
        return self.name

    # -- loading -----------------------------------------------------------

    def load(
        self,
        data: str,
        settings: Optional[str] = None,
        errors: Optional[list[str]] = None,
        *,
        selected: Optional[str] = None,
        playable: Iterable[str] = PLAYABLE_SLUGCATS,
        decoder: Decoder = decode_placed_object,
    ) -> None:
        """Parse level and settings text and rebuild everything derived.

        Problems are appended to *errors*; nothing raises on bad input.
        """
        level = parse_level(data, self.name, errors)
        self.grid = level.grid
        self.water_level.original = level.header.water_level
        self.water_in_front = level.header.water_in_front
        self.tiles_loaded = level.tiles_loaded
        self.data_string = level.data_string
        self.settings_string = settings

        if level.tiles_loaded:
            self.shortcuts, self.exits = trace_room(self.grid)
        else:
            self.shortcuts, self.exits = [], []

        parsed = parse_settings(settings)
        self.effects = parsed.effects
        placement = resolve_placements(
            parsed.placed_objects,
            room_height=self.grid.height,
            playable=playable,
            selected=selected,
            decoder=decoder,
        )
        self.placed_objects = placement.objects
        self.treasury_pos = placement.treasury_pos
        self.outpost_pos = placement.outpost_pos

        self.clear_children()
        for obj in self.placed_objects:
            self.add_child(ObjectNode(name=obj.type, position=obj.pos, placed=obj))
        self._add_markers()

        self.deathpit.original = self._detect_deathpit()
        if find_effect(self.effects, EFFECT_LETHAL_WATER) is not None:
            acid = self.palette.get_acid_color(self.region_id)
            if acid is not None:
                self.acid_water.original = True
                self.acid_color.original = acid

        self.cutouts = None
        self.cutouts_dirty = True
        self.tile_map_dirty = True
        self.loaded = True
        logger.debug(
            "loaded room %s (%dx%d, %d shortcuts, %d exits, %d objects)",
            self.name, self.grid.width, self.grid.height,
            len(self.shortcuts), len(self.exits), len(self.placed_objects),
        )

    def _detect_deathpit(self) -> bool:
        if self.is_shelter or self.is_gate or self.water_level.value >= 0:
            return False
        if self.grid.width == 0 or self.grid.height == 0:
            return False
        bottom = self.grid.height - 1
        return any(
            self.grid.get(x, bottom).terrain == TerrainType.AIR
            for x in range(self.grid.width)
        )

    def _align(self, pos: Optional[tuple[float, float]]) -> tuple[float, float]:
        if pos is None or self.grid.width == 0 or self.grid.height == 0:
            return (0.5, 0.5)
        return (pos[0] / self.grid.width, pos[1] / self.grid.height)

    def _add_markers(self) -> None:
        if self.is_shelter:
            self.add_child(TextMarker(name="ShelterMarker", text="Shelter"))
        if self.is_scavenger_outpost:
            self.add_child(TextMarker(
                name="TollText", text="Scavenger toll", align=self._align(self.outpost_pos)))
        if self.is_scavenger_trader:
            self.add_child(TextMarker(name="TraderText", text="Scavenger merchant"))
        if self.treasury_pos is not None:
            self.add_child(TextMarker(
                name="TreasuryText", text="Scavenger treasury",
                align=self._align(self.treasury_pos)))
        if self.broken_for:
            names = " ".join(sorted(self.broken_for))
            self.add_child(TextMarker(name="BrokenShelterText", text=f"Broken for {names}"))
        if self.is_gate and self.gate_data is not None and self.gate_data.target_region_name:
            self.add_child(TextMarker(
                name="TargetRegionText", text=f"To {self.gate_data.target_region_name}"))

    @property
    def is_scavenger_treasury(self) -> bool:
        return self.treasury_pos is not None

    # -- mutation ----------------------------------------------------------

    def set_water_level(self, level: int) -> None:
        self.water_level.set(level)
        self.tile_map_dirty = True

    def set_subregion(self, name: str) -> None:
        self.subregion.set(self.palette.get_subregion(name))
        self.tile_map_dirty = True

    def set_deathpit(self, value: bool) -> None:
        self.deathpit.set(value)
        self.tile_map_dirty = True

    def set_better_cutout(self, value: bool) -> None:
        self.better_cutout.set(value)
        self.cutouts_dirty = True
        self.tile_map_dirty = True

    def set_cut_all_solid(self, value: bool) -> None:
        self.cut_all_solid.set(value)
        self.cutouts_dirty = True
        self.tile_map_dirty = True

    def set_acid_water(self, value: bool) -> None:
        self.acid_water.set(value)
        self.tile_map_dirty = True

    def set_acid_color(self, color: Color) -> None:
        self.acid_color.set(color)
        self.tile_map_dirty = True

    def set_draw_in_room_shortcuts(self, value: bool) -> None:
        self.draw_in_room_shortcuts.set(value)

    def set_options(self, options: RenderOptions) -> None:
        self.options = options
        self.tile_map_dirty = True

    def mark_tile_map_dirty(self) -> None:
        """Call after changing shared inputs such as the palette."""
        self.tile_map_dirty = True

    # -- derived artifacts -------------------------------------------------

    def process_cutouts(self) -> np.ndarray:
        """Recompute the cutout mask and clear its dirty flag."""
        self.cutouts = compute_cutouts(
            self.grid,
            cut_all=self.cut_all_solid.value,
            better_cutout=self.better_cutout.value,
        )
        self.cutouts_dirty = False
        return self.cutouts

    def get_cutouts(self) -> np.ndarray:
        if self.cutouts is None or self.cutouts_dirty:
            return self.process_cutouts()
        return self.cutouts

    def update_tile_map(self) -> np.ndarray:
        """Rasterize the room and clear the tile map dirty flag."""
        acid = self.acid_color.value if self.acid_water.value else None
        tile_map = rasterize(
            self.grid,
            self.subregion.value,
            water_level=self.water_level.value,
            effects=self.effects,
            cutouts=self.get_cutouts(),
            shortcuts=self.shortcuts,
            deathpit=self.deathpit.value,
            acid_color=acid,
            options=self.options,
        )
        tile_map.flags.writeable = False
        self.tile_map = tile_map
        self.tile_map_options = replace(self.options)
        self.tile_map_dirty = False
        return tile_map

    def get_tile_map(self) -> np.ndarray:
        """The cached RGBA tile map; rebuilt only when missing or dirty.

        Render options are compared against the ones the cached map was built
        with, so editing ``options`` in place also triggers a rebuild.
        """
        if (
            self.tile_map is None
            or self.tile_map_dirty
            or self.cutouts_dirty
            or self.options != self.tile_map_options
        ):
            return self.update_tile_map()
        return self.tile_map

    def in_room_shortcut_paths(self) -> list[list[Point]]:
        """Tunnel polylines for traced shortcuts, when that overlay is on."""
        if not self.draw_in_room_shortcuts.value:
            return []
        return [trace_path(self.grid, s.entrance) for s in self.shortcuts]

    # -- persistence -------------------------------------------------------

    def save_overrides(self) -> dict[str, Any]:
        """User-toggled fields, ready for JSON."""
        out: dict[str, Any] = {}
        self.deathpit.save(out)
        self.subregion.save(out, lambda s: s.name)
        self.better_cutout.save(out)
        self.cut_all_solid.save(out)
        self.water_level.save(out)
        self.draw_in_room_shortcuts.save(out)
        self.acid_water.save(out)
        self.acid_color.save(out, list)
        if self.is_gate and self.gate_data is not None:
            out["gateData"] = self.gate_data.to_json()
        return out

    def load_overrides(self, data: dict[str, Any]) -> None:
        """Apply saved overrides on top of the parsed defaults."""
        self.subregion.load(data, self.palette.get_subregion)
        self.deathpit.load(data)
        self.water_level.load(data, int)
        self.draw_in_room_shortcuts.load(data)
        self.acid_water.load(data)
        self.acid_color.load(data, tuple)
        if self.better_cutout.load(data) | self.cut_all_solid.load(data):
            self.cutouts_dirty = True

        gate = data.get("gateData")
        if isinstance(gate, dict):
            self.gate_data = GateData.from_json(gate)
        self.tile_map_dirty = True


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def settings_path_for(room_path: Path) -> Path:
    """``XX_A01.txt`` → ``XX_A01_settings.txt`` next to it."""
    return room_path.with_name(f"{room_path.stem}_settings{room_path.suffix}")


def load_room_file(
    path: Path,
    errors: list[str],
    *,
    palette: Optional[ColorDatabase] = None,
    options: Optional[RenderOptions] = None,
    region_id: str = "",
    selected: Optional[str] = None,
) -> Room:
    """Load a room from disk, picking up ``*_settings.txt`` when present."""
    settings_path = settings_path_for(path)
    settings = settings_path.read_text() if settings_path.is_file() else None
    room = Room(
        name=path.stem,
        region_id=region_id,
        palette=palette or ColorDatabase(),
        options=options or RenderOptions(),
        is_gate=path.stem.upper().startswith("GATE_"),
    )
    room.load(path.read_text(), settings, errors, selected=selected)
    return room


def load_rooms(
    paths: Iterable[Path],
    *,
    palette: Optional[ColorDatabase] = None,
    options: Optional[RenderOptions] = None,
    region_id: str = "",
    selected: Optional[str] = None,
) -> tuple[list[Room], list[str]]:
    """Load a batch of rooms; errors are collected, never raised per room.

    Unreadable files are reported in the error list and skipped.
    """
    palette = palette or ColorDatabase()
    options = options or RenderOptions()
    errors: list[str] = []
    rooms: list[Room] = []
    for path in paths:
        try:
            room = load_room_file(
                path, errors, palette=palette, options=options,
                region_id=region_id, selected=selected,
            )
        except OSError as exc:
            errors.append(f"Could not read room {path}: {exc}")
            logger.warning("could not read room %s: %s", path, exc)
            continue
        rooms.append(room)
    return rooms, errors


def save_overrides_file(rooms: Iterable[Room], path: Path) -> None:
    """Write every room's overrides as ``{room name: overrides}`` JSON."""
    data = {room.name: room.save_overrides() for room in rooms}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_overrides_file(rooms: Iterable[Room], path: Path) -> None:
    """Apply overrides from a JSON file; unknown room names are ignored."""
    with open(path) as f:
        data = json.load(f)
    for room in rooms:
        overrides = data.get(room.name)
        if overrides:
            room.load_overrides(overrides)
