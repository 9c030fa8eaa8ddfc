"""cornifer/placement.py — Placed objects and filter availability masking.

Object tokens come from the settings ``PlacedObjects`` record and look like
``Type><x><y><payload``, payload fields separated by ``~``. Token positions
are room pixels, twenty per tile; decoded positions are in tiles.

Filter objects are not placed. Each filter restricts the character
availability of every object within its radius; objects that end up
available to nobody, or not to the selected character, are dropped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from cornifer.constants import FILTER_RADIUS_DIVISOR, PIXELS_PER_TILE, PLAYABLE_SLUGCATS

logger = logging.getLogger(__name__)

FILTER = "Filter"
SCAVENGER_TREASURY = "ScavengerTreasury"
SCAVENGER_OUTPOST = "ScavengerOutpost"

# Landmarks that stay on the map regardless of the selected character
NON_PICKUP_OBJECTS = frozenset({
    "GhostSpot", "BlueToken", "GoldToken", "PurpleToken",
    "RedToken", "WhiteToken", "DevToken", "GreenToken",
    "DataPearl", "UniqueDataPearl", "ScavengerOutpost",
    "HRGuard", "TempleGuard", "MoonCloak",
})


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class PlacedObject:
    """One decoded placed object."""

    type: str
    pos: tuple[float, float]
    handle: tuple[float, float] = (0.0, 0.0)
    availability: set[str] = field(default_factory=set)
    remove_by_availability: bool = False
    data: list[str] = field(default_factory=list)

    @property
    def handle_length(self) -> float:
        return math.hypot(*self.handle)

    @property
    def filter_radius(self) -> float:
        return self.handle_length / FILTER_RADIUS_DIVISOR

    def distance_to(self, other: PlacedObject) -> float:
        return math.hypot(self.pos[0] - other.pos[0], self.pos[1] - other.pos[1])


@dataclass
class PlacementResult:
    objects: list[PlacedObject] = field(default_factory=list)
    filters: list[PlacedObject] = field(default_factory=list)
    treasury_pos: Optional[tuple[float, float]] = None
    outpost_pos: Optional[tuple[float, float]] = None

    @property
    def is_treasury(self) -> bool:
        return self.treasury_pos is not None


Decoder = Callable[[str], Optional[PlacedObject]]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _parse_float(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def decode_placed_object(token: str) -> Optional[PlacedObject]:
    """Decode ``Type><x><y><payload``; returns None when unparseable.

    Filter payloads are ``hx~hy~Name|Name...``: the handle vector followed by
    the characters the filter allows.
    """
    parts = token.split("><")
    if len(parts) < 3 or not parts[0]:
        return None
    x = _parse_float(parts[1])
    y = _parse_float(parts[2])
    if x is None or y is None:
        return None

    obj_type = parts[0]
    data = parts[3].split("~") if len(parts) > 3 and parts[3] else []
    obj = PlacedObject(
        type=obj_type,
        pos=(x / PIXELS_PER_TILE, y / PIXELS_PER_TILE),
        remove_by_availability=obj_type not in NON_PICKUP_OBJECTS,
        data=data,
    )

    if obj_type == FILTER:
        if len(data) < 2:
            return None
        hx = _parse_float(data[0])
        hy = _parse_float(data[1])
        if hx is None or hy is None:
            return None
        obj.handle = (hx, hy)
        if len(data) > 2:
            obj.availability = {name for name in data[2].split("|") if name}
    return obj


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def apply_filters(
    objects: Iterable[PlacedObject],
    filters: Iterable[PlacedObject],
    playable: Iterable[str] = PLAYABLE_SLUGCATS,
) -> set[int]:
    """Intersect object availability with every filter covering it.

    Returns the ids of the objects at least one filter covered.
    """
    playable = set(playable)
    objects = list(objects)
    touched: set[int] = set()
    for flt in filters:
        radius = flt.filter_radius
        for obj in objects:
            if obj.distance_to(flt) > radius:
                continue
            if not obj.availability:
                obj.availability.update(playable)
            obj.availability &= flt.availability
            touched.add(id(obj))
    return touched


def is_dropped(obj: PlacedObject, selected: Optional[str], touched: bool) -> bool:
    if touched and not obj.availability:
        return True
    return (
        obj.remove_by_availability
        and selected is not None
        and bool(obj.availability)
        and selected not in obj.availability
    )


def resolve_placements(
    tokens: Iterable[str],
    *,
    room_height: int,
    playable: Iterable[str] = PLAYABLE_SLUGCATS,
    selected: Optional[str] = None,
    decoder: Decoder = decode_placed_object,
) -> PlacementResult:
    """Decode object tokens and apply filter masking.

    Args:
        tokens: Raw object tokens from the PlacedObjects record.
        room_height: Room height in tiles, used to flip treasury and outpost
            positions into top-down coordinates.
        playable: Character ids seeded into unrestricted objects that a
            filter covers.
        selected: Currently selected character, if any.
        decoder: Token decoder; tokens it rejects are skipped.
    """
    result = PlacementResult()
    for token in tokens:
        obj = decoder(token)
        if obj is None:
            logger.debug("skipping undecodable placed object %r", token)
            continue

        if obj.type == FILTER:
            result.filters.append(obj)
        elif obj.type == SCAVENGER_TREASURY:
            result.treasury_pos = (obj.pos[0], room_height - obj.pos[1])
        else:
            result.objects.append(obj)

        if obj.type == SCAVENGER_OUTPOST:
            result.outpost_pos = (obj.pos[0], room_height - obj.pos[1])

    touched = {id(obj) for obj in result.objects if obj.availability}
    touched |= apply_filters(result.objects, result.filters, playable)

    result.objects = [
        obj for obj in result.objects
        if not is_dropped(obj, selected, id(obj) in touched)
    ]
    return result
