"""cornifer/cli.py — Render room files to PNG tile maps.

Usage::

    python -m cornifer.cli rooms/SU_A04.txt -o out/
    python -m cornifer.cli rooms/*.txt --palette palette.yaml --subregion "Outskirts"
    python -m cornifer.cli rooms/*.txt --cut-all --mark-shortcuts --scale 4
    python -m cornifer.cli rooms/*.txt --tile-walls --bg-shortcuts

Settings are picked up from ``<room>_settings.txt`` next to each room file.
Exits with status 1 when any room reported a load error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from PIL import Image

from cornifer.config import RenderOptions, configure_logging
from cornifer.palette import ColorDatabase, load_palette
from cornifer.room import Room, load_overrides_file, load_rooms, save_overrides_file

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render room tile maps to PNG")
    parser.add_argument("rooms", nargs="+", help="Room level text files")
    parser.add_argument(
        "--output", "-o", default=".", help="Output directory for PNG files",
    )
    parser.add_argument("--palette", help="Palette YAML file")
    parser.add_argument("--subregion", help="Subregion name for every room")
    parser.add_argument("--region", default="", help="Region id (acid color lookup)")
    parser.add_argument("--selected", help="Selected character for object filtering")
    parser.add_argument("--overrides", help="Room overrides JSON to apply")
    parser.add_argument(
        "--save-overrides", help="Write the final room overrides to this JSON file",
    )
    parser.add_argument(
        "--cut-all", action="store_true", help="Hide every solid tile",
    )
    parser.add_argument(
        "--no-better-cutout", action="store_true",
        help="Disable thin-wall protection in the cutout flood",
    )
    parser.add_argument(
        "--no-cropping", action="store_true", help="Draw cut-out tiles anyway",
    )
    parser.add_argument(
        "--mark-shortcuts", action="store_true", help="Paint shortcut entrances red",
    )
    parser.add_argument(
        "--exits-only", action="store_true", help="Only mark room exits",
    )
    parser.add_argument(
        "--tile-walls", action="store_true", help="Shade tiles with a wall behind them",
    )
    parser.add_argument(
        "--bg-shortcuts", action="store_true",
        help="Draw shortcut entrances in the background color",
    )
    parser.add_argument(
        "--water-transparency", type=float, default=RenderOptions.water_transparency,
        help="Blend factor between water color and tile color",
    )
    parser.add_argument("--scale", type=int, default=1, help="Pixels per tile")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def render_room(room: Room, out_dir: Path, scale: int = 1) -> Path:
    """Write the room's tile map as ``<name>.png`` and return the path."""
    image = Image.fromarray(room.get_tile_map().copy())
    if scale > 1:
        image = image.resize((image.width * scale, image.height * scale), Image.Resampling.NEAREST)
    path = out_dir / f"{room.name}.png"
    image.save(path)
    return path


def main(argv: list[str] | None = None) -> None:
    """Render rooms from the command line."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    palette = load_palette(Path(args.palette)) if args.palette else ColorDatabase()
    options = RenderOptions(
        water_transparency=args.water_transparency,
        mark_shortcuts=args.mark_shortcuts or args.exits_only,
        mark_exits_only=args.exits_only,
        draw_tile_walls=args.tile_walls,
        region_bg_shortcuts=args.bg_shortcuts,
        disable_cropping=args.no_cropping,
    )

    rooms, errors = load_rooms(
        [Path(p) for p in args.rooms if not Path(p).stem.endswith("_settings")],
        palette=palette,
        options=options,
        region_id=args.region,
        selected=args.selected,
    )
    if args.overrides:
        load_overrides_file(rooms, Path(args.overrides))

    for room in rooms:
        if args.subregion is not None:
            try:
                room.set_subregion(args.subregion)
            except KeyError as exc:
                parser.error(str(exc))
        if args.cut_all:
            room.set_cut_all_solid(True)
        if args.no_better_cutout:
            room.set_better_cutout(False)

    out_dir = Path(args.output)
    out_dir.mkdir(parents=True, exist_ok=True)
    for room in rooms:
        if not room.tiles_loaded or 0 in room.grid.size:
            continue
        path = render_room(room, out_dir, args.scale)
        logger.info("wrote %s", path)

    if args.save_overrides:
        save_overrides_file(rooms, Path(args.save_overrides))

    if errors:
        print(f"\n{len(errors)} load error(s):", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
