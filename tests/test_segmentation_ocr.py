"""Tests for connected components and glyph recognition."""

import base64

import pytest

from rasterpos.config import GlyphCatalogConfig
from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Rect
from rasterpos.raster.imaging import to_png_bytes
from rasterpos.raster.ocr import UNKNOWN, GlyphCatalog, similarity
from rasterpos.raster.segmentation import find_components

# "L" occupies columns 0-2, "T" columns 3-5.
REFERENCE_ROWS = [
    "#..###..",
    "#...#...",
    "#...#...",
    "###.#...",
]
GLYPHS = {"L": [0, 0, 3, 4], "T": [3, 0, 6, 4]}


@pytest.fixture
def reference(ascii_bitmap):
    return ascii_bitmap(REFERENCE_ROWS)


@pytest.fixture
def catalog(reference):
    return GlyphCatalog(reference, {label: Rect(*coords) for label, coords in GLYPHS.items()})


class TestFindComponents:
    """Tests for 8-connected component extraction."""

    def test_blank_has_no_components(self):
        assert find_components(Bitmap(16, 4)) == []

    def test_diagonal_pixels_are_connected(self, ascii_bitmap):
        """Pixels touching only at a corner form one component."""
        target = ascii_bitmap(["#.......", ".#......", "..#....."])
        components = find_components(target)
        assert len(components) == 1
        assert components[0].area == Rect(0, 0, 3, 3)

    def test_components_in_scan_order(self, ascii_bitmap):
        """Components are ordered by their first pixel in row-major order."""
        target = ascii_bitmap(["....##..", "#...##..", "#......."])
        areas = [c.area for c in find_components(target)]
        assert areas == [Rect(4, 0, 6, 2), Rect(0, 1, 1, 3)]

    def test_components_of_view_share_owner(self, ascii_bitmap):
        """Components found inside a view stay views onto the same owner."""
        target = ascii_bitmap(["........", "......#.", "......#."])
        view = target.select(Rect(4, 1, 8, 3))
        components = find_components(view)
        assert len(components) == 1
        assert components[0].area == Rect(6, 1, 7, 3)
        assert components[0].owner is target
        assert components[0].size() == (1, 2)


class TestSimilarity:
    """Tests for the agreement score."""

    def test_identical(self, ascii_bitmap):
        bitmap = ascii_bitmap(["#.#.#.#."])
        assert similarity(bitmap, bitmap) == 1.0

    def test_size_mismatch_scores_zero(self):
        assert similarity(Bitmap(8, 1), Bitmap(8, 2)) == 0.0

    def test_partial_agreement(self, ascii_bitmap):
        assert similarity(ascii_bitmap(["####...."]), ascii_bitmap(["##......"])) == 0.75


class TestGlyphCatalog:
    """Tests for recognising glyphs against the reference."""

    def test_labels_sorted(self, catalog):
        assert catalog.labels == ["L", "T"]

    def test_read_text(self, catalog, ascii_bitmap):
        """Each component is recognised in scan order."""
        target = ascii_bitmap(
            [
                "###..#......",
                ".#...#......",
                ".#...#......",
                ".#...###....",
            ]
        )
        assert catalog.read(target) == "TL"

    def test_one_pixel_off_still_recognised(self, catalog, ascii_bitmap):
        """A single differing pixel keeps the score above the threshold."""
        target = ascii_bitmap(["##.", "#..", "#..", "###"])
        assert catalog.read(target) == "L"

    def test_poor_match_is_unknown(self, catalog, ascii_bitmap):
        """Two differing pixels out of twelve fall below the threshold."""
        target = ascii_bitmap(["###", "#..", "#..", "###"])
        assert catalog.read(target) == UNKNOWN

    def test_unknown_size_is_unknown(self, catalog, ascii_bitmap):
        """Regions with no template of the same size are unknown."""
        target = ascii_bitmap(["##......", "##......"])
        assert catalog.read(target) == UNKNOWN

    def test_ties_go_to_first_label(self, reference, ascii_bitmap):
        """Identical templates resolve to the lexicographically first label."""
        catalog = GlyphCatalog(reference, {"b": Rect(0, 0, 3, 4), "a": Rect(0, 0, 3, 4)})
        target = ascii_bitmap(["#..", "#..", "#..", "###"])
        assert catalog.read(target) == "a"

    def test_reference_required(self):
        with pytest.raises(ValueError):
            GlyphCatalog()

    def test_from_base64_png(self, reference, ascii_bitmap):
        """The reference may be supplied as base64 PNG data."""
        data = base64.b64encode(to_png_bytes(reference)).decode()
        catalog = GlyphCatalog.from_base64_png(data, GLYPHS)
        assert catalog.reference == reference
        assert catalog.recognize(ascii_bitmap(["###", ".#.", ".#.", ".#."]).select(Rect(0, 0, 3, 4))) == "T"

    def test_from_config_with_path(self, reference, tmp_path):
        """from_config reads the reference image from disk."""
        path = tmp_path / "glyphs.png"
        path.write_bytes(to_png_bytes(reference))
        config = GlyphCatalogConfig(image_path=path, glyphs=GLYPHS, threshold=0.95)
        catalog = GlyphCatalog.from_config(config)
        assert catalog.threshold == 0.95
        assert catalog.reference == reference

    def test_bad_table_entry(self):
        with pytest.raises(ValueError):
            GlyphCatalog.from_base64_png("", {"x": [0, 0, 1]})
