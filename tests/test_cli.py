"""Tests for cornifer/cli.py — command line rendering."""

from __future__ import annotations

import json

import pytest
from PIL import Image

from cornifer.cli import build_parser, main

from tests.rooms import level_text, open_box


PALETTE_YAML = """\
subregions:
  - name: ""
    background: "#ffffff"
    water: "#0000ff"
  - name: Outskirts
    background: "#102030"
"""


def _write_room(tmp_path, name, rows):
    path = tmp_path / f"{name}.txt"
    path.write_text(level_text(rows, name=name))
    return path


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["a.txt"])
        assert args.rooms == ["a.txt"]
        assert args.output == "."
        assert args.scale == 1
        assert args.water_transparency == 0.3
        assert not args.cut_all
        assert not args.tile_walls
        assert not args.bg_shortcuts

    def test_render_flags(self):
        args = build_parser().parse_args(["a.txt", "--tile-walls", "--bg-shortcuts"])
        assert args.tile_walls and args.bg_shortcuts

    def test_no_args_exit_2(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------

class TestMain:
    def test_writes_png(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        out = tmp_path / "out"
        with pytest.raises(SystemExit) as exc_info:
            main([str(room), "-o", str(out)])
        assert exc_info.value.code == 0
        with Image.open(out / "SU_A01.png") as image:
            assert image.size == (6, 4)
            assert image.mode == "RGBA"
            # Border rock is cut out, interior is drawn
            assert image.getpixel((0, 0))[3] == 0
            assert image.getpixel((2, 2))[3] == 255

    def test_scale_and_palette(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        palette = tmp_path / "palette.yaml"
        palette.write_text(PALETTE_YAML)
        with pytest.raises(SystemExit):
            main([
                str(room), "-o", str(tmp_path), "--palette", str(palette),
                "--subregion", "Outskirts", "--scale", "3",
            ])
        with Image.open(tmp_path / "SU_A01.png") as image:
            assert image.size == (18, 12)
            assert image.getpixel((7, 7)) == (0x10, 0x20, 0x30, 255)

    def test_unknown_subregion_is_usage_error(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        with pytest.raises(SystemExit) as exc_info:
            main([str(room), "-o", str(tmp_path), "--subregion", "Nowhere"])
        assert exc_info.value.code == 2

    def test_no_cropping(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        with pytest.raises(SystemExit):
            main([str(room), "-o", str(tmp_path), "--no-cropping"])
        with Image.open(tmp_path / "SU_A01.png") as image:
            assert image.getpixel((0, 0)) == (0, 0, 0, 255)

    def test_tile_walls_flag(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", [
            "######",
            "#w...#",
            "#....#",
            "######",
        ])
        with pytest.raises(SystemExit):
            main([str(room), "-o", str(tmp_path)])
        with Image.open(tmp_path / "SU_A01.png") as image:
            assert image.getpixel((1, 1)) == (0x80, 0x98, 0xB0, 255)
        with pytest.raises(SystemExit):
            main([str(room), "-o", str(tmp_path), "--tile-walls"])
        with Image.open(tmp_path / "SU_A01.png") as image:
            assert image.getpixel((1, 1)) == (96, 114, 132, 255)

    def test_zero_area_room_not_written(self, tmp_path):
        flat = tmp_path / "SU_Z00.txt"
        flat.write_text("SU_Z00\n5*0|-1|0\n")
        with pytest.raises(SystemExit) as exc_info:
            main([str(flat), "-o", str(tmp_path)])
        assert exc_info.value.code == 0
        assert not (tmp_path / "SU_Z00.png").exists()

    def test_load_errors_exit_1(self, tmp_path, capsys):
        good = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        broken = tmp_path / "SU_B02.txt"
        broken.write_text("SU_B02\n3*3|-1|0\n")
        out = tmp_path / "out"
        with pytest.raises(SystemExit) as exc_info:
            main([str(good), str(broken), "-o", str(out)])
        assert exc_info.value.code == 1
        assert "Could not find tile data for room SU_B02" in capsys.readouterr().err
        assert (out / "SU_A01.png").exists()
        assert not (out / "SU_B02.png").exists()

    def test_settings_files_skipped(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        settings = tmp_path / "SU_A01_settings.txt"
        settings.write_text("Effects: Fog-1-0-n\n")
        with pytest.raises(SystemExit) as exc_info:
            main([str(room), str(settings), "-o", str(tmp_path)])
        assert exc_info.value.code == 0
        assert not (tmp_path / "SU_A01_settings.png").exists()

    def test_overrides_round_trip(self, tmp_path):
        room = _write_room(tmp_path, "SU_A01", open_box(6, 4))
        saved = tmp_path / "overrides.json"
        with pytest.raises(SystemExit):
            main([str(room), "-o", str(tmp_path), "--cut-all", "--save-overrides", str(saved)])
        assert json.loads(saved.read_text()) == {"SU_A01": {"cutAllSolid": True}}

        overrides = tmp_path / "in.json"
        overrides.write_text(json.dumps({"SU_A01": {"waterLevel": 4}}))
        with pytest.raises(SystemExit):
            main([str(room), "-o", str(tmp_path), "--overrides", str(overrides)])
        with Image.open(tmp_path / "SU_A01.png") as image:
            # Flooded interior is no longer the plain default background
            assert image.getpixel((2, 1)) != (0x80, 0x98, 0xB0, 255)
