"""Tests for the command line entry points."""

import pytest
import yaml

from rasterpos.__main__ import main as rasterpos_main
from rasterpos.cli.render import main as render_main
from rasterpos.models.printer import DEFAULT_CUT_COMMAND
from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.cutline import with_cutline
from rasterpos.raster.escpos import decode_raster
from rasterpos.raster.imaging import load_png, save_png


@pytest.fixture
def image_path(tmp_path, ascii_bitmap):
    bitmap = ascii_bitmap(["#" * 64] + ["." * 64] * 9)
    return save_png(bitmap, tmp_path / "receipt.png")


class TestRenderCLI:
    """Tests for rasterpos-render."""

    def test_render_bin(self, image_path, tmp_path, capsys):
        output = tmp_path / "out.bin"
        assert render_main([str(image_path), "-o", str(output)]) == 0

        data = output.read_bytes()
        assert data.endswith(DEFAULT_CUT_COMMAND)
        blocks = decode_raster(data[: -len(DEFAULT_CUT_COMMAND)])
        # 64 dots centred on 576: 256 dots of margin.
        assert blocks[0].width_bytes == (256 + 64) // 8
        assert sum(b.height for b in blocks) == 10 + 120
        assert "1 page(s)" in capsys.readouterr().out

    def test_render_default_output(self, image_path):
        assert render_main([str(image_path)]) == 0
        assert image_path.with_suffix(".bin").exists()
        assert load_png(image_path).height == 10

    def test_render_options(self, image_path, tmp_path):
        output = tmp_path / "out.bin"
        args = [str(image_path), "-o", str(output), "--no-cut", "--align", "left", "--margin-bottom", "0"]
        assert render_main(args) == 0
        blocks = decode_raster(output.read_bytes())
        assert blocks[0].width_bytes == 8
        assert blocks[0].height == 10

    def test_render_png_pages(self, tmp_path):
        source = save_png(with_cutline(Bitmap(64, 4)).with_append(Bitmap(64, 6)), tmp_path / "two.png")
        assert render_main([str(source), "--format", "png"]) == 0
        first = load_png(tmp_path / "two-page-1.png")
        second = load_png(tmp_path / "two-page-2.png")
        assert (first.height, second.height) == (4, 6)

    def test_missing_image(self, tmp_path, capsys):
        assert render_main([str(tmp_path / "nope.png")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_unreadable_image(self, tmp_path, capsys):
        path = tmp_path / "bad.png"
        path.write_bytes(b"garbage")
        assert render_main([str(path)]) == 1
        assert "Error loading image" in capsys.readouterr().err


@pytest.fixture
def config_path(tmp_path):
    data = {
        "printers": [
            {"name": "archive", "type": "file", "address": str(tmp_path / "out"), "page_delay": 0},
            {"name": "spare", "type": "file", "address": str(tmp_path / "spare"), "enabled": False},
        ]
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return path


class TestMainCLI:
    """Tests for the rasterpos command."""

    def test_list_printers(self, config_path, capsys):
        assert rasterpos_main(["--config", str(config_path), "list-printers"]) == 0
        out = capsys.readouterr().out
        assert "archive" in out
        assert "spare" not in out

    def test_print_image(self, config_path, image_path, tmp_path):
        assert rasterpos_main(["--config", str(config_path), "print-image", str(image_path)]) == 0
        written = list((tmp_path / "out").glob("*.png"))
        assert len(written) == 1
        assert load_png(written[0]) == load_png(image_path)

    def test_print_image_from_url(self, config_path, image_path, tmp_path):
        args = ["--config", str(config_path), "-p", "archive", "print-image", f"file://{image_path}"]
        assert rasterpos_main(args) == 0
        assert len(list((tmp_path / "out").glob("*.png"))) == 1

    def test_print_raw(self, config_path, tmp_path):
        raw = tmp_path / "job.bin"
        raw.write_bytes(b"\x1b@raw")
        assert rasterpos_main(["--config", str(config_path), "print-raw", str(raw)]) == 0
        written = list((tmp_path / "out").glob("*.bin"))
        assert [p.read_bytes() for p in written] == [b"\x1b@raw"]

    def test_print_raw_empty_file(self, config_path, tmp_path, capsys):
        raw = tmp_path / "empty.bin"
        raw.write_bytes(b"")
        assert rasterpos_main(["--config", str(config_path), "print-raw", str(raw)]) == 1
        assert "is empty" in capsys.readouterr().err
        assert not list((tmp_path / "out").glob("*.bin"))

    def test_open_drawer(self, config_path):
        assert rasterpos_main(["--config", str(config_path), "open-drawer"]) == 0

    def test_unknown_printer(self, config_path, capsys):
        assert rasterpos_main(["--config", str(config_path), "-p", "bar", "open-drawer"]) == 1
        assert "Unknown printer: bar" in capsys.readouterr().err

    def test_missing_image(self, config_path, tmp_path, capsys):
        assert rasterpos_main(["--config", str(config_path), "print-image", str(tmp_path / "nope.png")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_read_text(self, tmp_path, ascii_bitmap, capsys):
        reference = save_png(ascii_bitmap(["#..###..", "#...#...", "#...#...", "###.#..."]), tmp_path / "glyphs.png")
        target = save_png(ascii_bitmap(["###..#..", ".#...#..", ".#...#..", ".#...###"]), tmp_path / "text.png")
        config = tmp_path / "ocr.yaml"
        config.write_text(
            yaml.dump({"glyph_catalog": {"image_path": reference.name, "glyphs": {"L": [0, 0, 3, 4], "T": [3, 0, 6, 4]}}})
        )
        assert rasterpos_main(["--config", str(config), "read-text", str(target)]) == 0
        assert capsys.readouterr().out.strip() == "TL"

    def test_read_text_without_catalog(self, config_path, image_path, capsys):
        assert rasterpos_main(["--config", str(config_path), "read-text", str(image_path)]) == 1
        assert "glyph_catalog" in capsys.readouterr().err
