"""Tests for pattern construction and matching."""

import random

import pytest

from rasterpos.raster.bitmap import Bitmap
from rasterpos.raster.geometry import Point, Rect
from rasterpos.raster.pattern import BLACK, WHITE, Pattern, PatternFrozenError, SearchArea


class TestPatternBuilders:
    """Tests for adding constraints."""

    def test_negative_offsets_resolve_from_far_edge(self):
        """(-1, -1) refers to the bottom-right offset."""
        pattern = Pattern(4, 3).add_point(-1, -1, BLACK)
        assert pattern.points == {Point(3, 2): BLACK}

    def test_offset_outside_pattern_rejected(self):
        """Offsets beyond the rectangle are errors."""
        with pytest.raises(ValueError):
            Pattern(4, 3).add_point(4, 0, BLACK)

    def test_rows_and_columns(self):
        """Row and column helpers constrain whole lines."""
        pattern = Pattern(3, 2).add_row(0, BLACK).add_column(-1, WHITE)
        assert pattern.points == {
            Point(0, 0): BLACK,
            Point(1, 0): BLACK,
            Point(2, 0): WHITE,
            Point(2, 1): WHITE,
        }

    def test_add_area_and_remove_area(self):
        """Areas can be constrained and then released."""
        pattern = Pattern(4, 4).add_area(Rect(0, 0, 2, 2), BLACK)
        assert len(pattern.points) == 4
        pattern.remove_area(Rect(0, 0, 1, 2))
        assert set(pattern.points) == {Point(1, 0), Point(1, 1)}

    def test_add_border(self):
        """add_border constrains the outer ring."""
        pattern = Pattern(4, 4).add_border(1, WHITE)
        assert len(pattern.points) == 12
        assert Point(1, 1) not in pattern.points

    @pytest.mark.parametrize("bounds", [(-0.1, 0.5), (0.6, 0.5), (0.0, 1.1)])
    def test_invalid_black_ratio(self, bounds):
        """Ratio bounds must satisfy 0 <= lower <= upper <= 1."""
        with pytest.raises(ValueError):
            Pattern(2, 2).set_black_ratio(*bounds)

    def test_non_positive_size_rejected(self):
        """Patterns need a positive size."""
        with pytest.raises(ValueError):
            Pattern(0, 4)

    def test_frozen_pattern_rejects_edits(self):
        """Frozen patterns are read-only."""
        pattern = Pattern(2, 2).freeze()
        assert pattern.frozen
        with pytest.raises(PatternFrozenError):
            pattern.add_point(0, 0, BLACK)
        with pytest.raises(PatternFrozenError):
            pattern.set_border_width(1)

    def test_from_bitmap_constrains_every_pixel(self, ascii_bitmap):
        """A pattern built from a bitmap matches that bitmap exactly."""
        source = ascii_bitmap(["#.", ".#"])
        pattern = Pattern.from_bitmap(source.select(Rect(0, 0, 2, 2)))
        assert pattern.width == 2
        assert len(pattern.points) == 4
        assert pattern.is_match_at(source, 0, 0)
        assert not pattern.is_match_at(source, 1, 0)


class TestSearchArea:
    """Tests for resolving search areas."""

    def test_defaults_cover_target(self):
        assert SearchArea().resolve(100, 50) == Rect(0, 0, 100, 50)

    def test_negative_values_count_from_far_edge(self):
        assert SearchArea(-10, 0, None, -5).resolve(100, 50) == Rect(90, 0, 100, 45)

    def test_clamped_to_target(self):
        assert SearchArea(0, 0, 500, 500).resolve(100, 50) == Rect(0, 0, 100, 50)


class TestPatternMatching:
    """Tests for is_match_at."""

    def test_point_constraints(self, ascii_bitmap):
        """Every point must have its required color."""
        target = ascii_bitmap(["#.......", ".#......"])
        pattern = Pattern(2, 2).add_black_points([(0, 0), (1, 1)]).add_white_points([(1, 0)])
        assert pattern.is_match_at(target, 0, 0)
        assert not pattern.is_match_at(target, 1, 0)

    def test_out_of_bounds_placement(self):
        """A pattern that would spill off the target never matches."""
        pattern = Pattern(4, 4)
        target = Bitmap(8, 4)
        assert pattern.is_match_at(target, 4, 0)
        assert not pattern.is_match_at(target, 5, 0)
        assert not pattern.is_match_at(target, -1, 0)

    def test_black_ratio_bounds(self, ascii_bitmap):
        """The black fraction of the rectangle must lie within bounds."""
        target = ascii_bitmap(["##......", "##......"])
        pattern = Pattern(4, 2, black_ratio=(0.4, 0.6))
        assert pattern.is_match_at(target, 0, 0)
        assert not pattern.is_match_at(target, 4, 0)

    def test_uniform_border(self, ascii_bitmap):
        """The border ring must be a single color."""
        framed = ascii_bitmap(["####", "#..#", "####"])
        broken = ascii_bitmap(["####", "#...", "####"])
        pattern = Pattern(4, 3, border_width=1)
        assert pattern.is_match_at(framed, 0, 0)
        assert not pattern.is_match_at(broken, 0, 0)
        assert pattern.is_match_at(Bitmap(8, 3), 0, 0)

    def test_matches_inside_view(self, ascii_bitmap):
        """Matching against a view uses the view's coordinates."""
        target = ascii_bitmap(["........", "....#..."])
        view = target.select(Rect(4, 1, 8, 2))
        pattern = Pattern(1, 1).add_point(0, 0, BLACK)
        assert pattern.is_match_at(view, 0, 0)

    @pytest.mark.parametrize("seed", range(20))
    def test_flipping_any_constrained_pixel_breaks_match(self, seed):
        """A pattern taken from a region matches it until one pixel changes."""
        rng = random.Random(seed)
        target = Bitmap(16, 8, rng.randbytes(16))
        x, y = rng.randrange(12), rng.randrange(5)
        pattern = Pattern.from_bitmap(target.select(Rect(x, y, x + 4, y + 3))).freeze()
        assert pattern.is_match_at(target, x, y)

        for dx, dy in pattern.points:
            flipped = target.copy()
            flipped.set_pixel(x + dx, y + dy, 1 - target.get_pixel(x + dx, y + dy))
            assert not pattern.is_match_at(flipped, x, y)
