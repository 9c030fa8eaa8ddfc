"""cornifer — Room tile pipeline for region map rendering."""

from cornifer.config import RenderOptions
from cornifer.cutout import compute_cutouts
from cornifer.level import Effect, parse_level, parse_settings
from cornifer.palette import ColorDatabase, Subregion, load_palette
from cornifer.placement import PlacedObject, decode_placed_object, resolve_placements
from cornifer.rasterizer import rasterize
from cornifer.room import Room, load_rooms
from cornifer.shortcuts import Shortcut, trace_room, trace_shortcut
from cornifer.tiles import ShortcutType, TerrainType, Tile, TileAttributes, TileGrid

__all__ = [
    "RenderOptions",
    "compute_cutouts",
    "Effect",
    "parse_level",
    "parse_settings",
    "ColorDatabase",
    "Subregion",
    "load_palette",
    "PlacedObject",
    "decode_placed_object",
    "resolve_placements",
    "rasterize",
    "Room",
    "load_rooms",
    "Shortcut",
    "trace_room",
    "trace_shortcut",
    "ShortcutType",
    "TerrainType",
    "Tile",
    "TileAttributes",
    "TileGrid",
]
