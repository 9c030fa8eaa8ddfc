"""cornifer/config.py — Render toggles and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEBUG = os.environ.get("CORNIFER_DEBUG", "") == "1"


@dataclass
class RenderOptions:
    """Map-wide switches that affect every room's tile map."""

    water_transparency: float = 0.3
    draw_tile_walls: bool = False
    region_bg_shortcuts: bool = False
    mark_shortcuts: bool = False
    mark_exits_only: bool = False
    disable_cropping: bool = False


def configure_logging(verbose: bool = False) -> None:
    """Set up root logging for command line use."""
    level = logging.DEBUG if verbose or DEBUG else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
