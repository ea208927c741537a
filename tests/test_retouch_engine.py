"""
Tests for the RetouchSession brushes and history.

Tests cover:
- Clone stamp exactness, source clipping and aligned mode
- Snapshot sampling within one stroke
- Blur brush strength, alpha handling and snapshot sampling
- Heal and smudge brushes
- Opacity blending
- In-place dabs touching only the brush area
- Undo / redo
- Error handling
"""

import numpy as np
import pytest

from PX_Libs.errors import BoundsError, ParameterError
from PX_Libs.ImageEditingLib.image_models import PixelBuffer
from PX_Libs.ImageEditingLib.retouch_engine import RetouchSession, circular_mask


def make_unique(width=20, height=12):
    """Every pixel carries a distinct (x, y) signature."""
    pixels = bytearray()
    for y in range(height):
        for x in range(width):
            pixels += bytes((x * 10, y * 20, (x + y) % 256, 255))
    return PixelBuffer(width, height, pixels)


def make_vertical_edge(size=20, alpha=255):
    pixels = bytearray()
    for y in range(size):
        for x in range(size):
            value = 255 if x >= size // 2 else 0
            pixels += bytes((value, value, value, alpha))
    return PixelBuffer(size, size, pixels)


def make_speck(size=20, speck=(10, 10)):
    """Uniform gray with one red pixel."""
    buffer = PixelBuffer.blank(size, size, (100, 100, 100, 255))
    buffer.set_pixel(speck[0], speck[1], (255, 0, 0, 255))
    return buffer


class TestCircularMask:
    """Tests for the brush footprint."""

    def test_radius_one(self):
        mask = circular_mask(1)
        assert mask.tolist() == [
            [False, True, False],
            [True, True, True],
            [False, True, False],
        ]

    def test_radius_two_area(self):
        assert int(circular_mask(2).sum()) == 13


class TestCloneStamp:
    """Tests for apply_clone."""

    def test_clone_copies_exact_pixels(self):
        original = make_unique()
        buffer = original.copy()
        session = RetouchSession(buffer)
        session.set_clone_source((3, 3))

        session.apply_clone((10, 4), radius=2)

        mask = circular_mask(2)
        for dy in range(-2, 3):
            for dx in range(-2, 3):
                if mask[dy + 2, dx + 2]:
                    assert buffer.get_pixel(10 + dx, 4 + dy) == original.get_pixel(3 + dx, 3 + dy)
        # Corner of the brush square is outside the circle
        assert buffer.get_pixel(12, 6) == original.get_pixel(12, 6)

    def test_source_outside_buffer_is_skipped(self):
        original = make_unique()
        buffer = original.copy()
        session = RetouchSession(buffer)
        session.set_clone_source((0, 5))

        session.apply_clone((8, 5), radius=2)

        assert buffer.get_pixel(6, 5) == original.get_pixel(6, 5)
        assert buffer.get_pixel(8, 5) == original.get_pixel(0, 5)
        assert buffer.get_pixel(10, 5) == original.get_pixel(2, 5)

    def test_dab_reads_pre_stroke_snapshot(self):
        original = make_unique()
        buffer = original.copy()
        session = RetouchSession(buffer)
        session.set_clone_source((4, 4))

        session.apply_stroke([(6, 4), (7, 4)], tool="clone", radius=2)

        # The second dab reads (4, 4) from the snapshot, not the first dab's output
        assert buffer.get_pixel(7, 4) == original.get_pixel(4, 4)

    def test_aligned_source_follows_pointer(self):
        original = make_unique()
        buffer = original.copy()
        session = RetouchSession(buffer)
        session.set_clone_source((2, 2))

        session.apply_stroke([(8, 6), (12, 6)], tool="clone", radius=1, aligned=True)

        assert buffer.get_pixel(8, 6) == original.get_pixel(2, 2)
        assert buffer.get_pixel(12, 6) == original.get_pixel(6, 2)

    def test_clone_without_source(self):
        session = RetouchSession(make_unique())
        with pytest.raises(ParameterError):
            session.apply_clone((5, 5), radius=2)
        assert not session.can_undo()

    def test_source_out_of_bounds(self):
        session = RetouchSession(make_unique())
        with pytest.raises(BoundsError):
            session.set_clone_source((20, 0))
        assert session.clone_source is None


class TestBlurBrush:
    """Tests for apply_blur."""

    def test_variance_decreases_with_strength(self):
        variances = []
        for strength in (1, 2, 3):
            buffer = make_vertical_edge()
            RetouchSession(buffer).apply_blur((10, 10), radius=5, strength=strength)
            variances.append(float(buffer.to_array()[..., 0].astype(np.float64).var()))

        assert variances[0] > variances[1] > variances[2]

    def test_blur_keeps_alpha(self):
        buffer = make_vertical_edge(alpha=77)
        RetouchSession(buffer).apply_blur((10, 10), radius=4, strength=2)

        assert (buffer.to_array()[..., 3] == 77).all()

    def test_blur_changes_only_brush_area(self):
        original = make_vertical_edge()
        buffer = original.copy()
        RetouchSession(buffer).apply_blur((10, 10), radius=3, strength=1)

        assert buffer.get_pixel(10, 2) == original.get_pixel(10, 2)
        assert buffer.get_pixel(10, 10) != original.get_pixel(10, 10)

    def test_blur_at_corner(self):
        buffer = make_vertical_edge()
        RetouchSession(buffer).apply_blur((0, 0), radius=6, strength=4)
        assert buffer.size == (20, 20)

    def test_dab_fully_outside(self):
        original = make_vertical_edge()
        buffer = original.copy()
        RetouchSession(buffer).apply_blur((100, 100), radius=5, strength=2)
        assert buffer == original

    def test_invalid_strength(self):
        session = RetouchSession(make_vertical_edge())
        with pytest.raises(ParameterError):
            session.apply_blur((5, 5), radius=3, strength=0)

    def test_invalid_radius(self):
        session = RetouchSession(make_vertical_edge())
        with pytest.raises(ParameterError):
            session.apply_blur((5, 5), radius=0, strength=1)


    def test_overlapping_dabs_equal_single_dab(self):
        stroked = make_vertical_edge()
        RetouchSession(stroked).apply_stroke([(10, 10), (10, 10)], tool="blur", radius=4, strength=2)

        single = make_vertical_edge()
        RetouchSession(single).apply_blur((10, 10), radius=4, strength=2)

        assert stroked == single

    def test_second_dab_reads_snapshot_in_overlap(self):
        stroked = make_vertical_edge()
        RetouchSession(stroked).apply_stroke([(8, 10), (11, 10)], tool="blur", radius=3, strength=1)

        single = make_vertical_edge()
        RetouchSession(single).apply_blur((11, 10), radius=3, strength=1)

        # Inside the second brush the result matches a lone dab there
        mask = circular_mask(3)
        for dy in range(-3, 4):
            for dx in range(-3, 4):
                if mask[dy + 3, dx + 3]:
                    assert stroked.get_pixel(11 + dx, 10 + dy) == single.get_pixel(11 + dx, 10 + dy)


class TestInPlaceDabs:
    """Dabs write into the existing bytearray and touch only the brush square."""

    def test_buffer_storage_is_reused(self):
        buffer = make_vertical_edge()
        storage = buffer.pixels
        session = RetouchSession(buffer)
        session.set_clone_source((2, 2))

        session.apply_stroke([(10, 10), (12, 10)], tool="blur", radius=3, strength=1)
        session.apply_stroke([(14, 14)], tool="clone", radius=2)

        assert buffer.pixels is storage
        assert session.undo()
        assert buffer.pixels is storage

    def test_dabs_do_not_convert_whole_image(self, monkeypatch):
        buffer = make_vertical_edge()
        session = RetouchSession(buffer)

        def fail(self):
            raise AssertionError("to_array called on the dab path")

        monkeypatch.setattr(PixelBuffer, "to_array", fail)
        session.apply_stroke([(10, 10), (11, 10), (12, 10)], tool="blur", radius=3, strength=1)
        monkeypatch.undo()

        assert buffer.get_pixel(10, 10) == (170, 170, 170, 255)

    def test_pixels_outside_brush_square_untouched(self):
        original = make_unique()
        buffer = original.copy()
        session = RetouchSession(buffer)
        session.set_clone_source((3, 3))

        session.apply_clone((10, 6), radius=3)

        before = original.to_array()
        after = buffer.to_array()
        outside = np.ones((12, 20), dtype=bool)
        outside[3:10, 7:14] = False
        assert np.array_equal(before[outside], after[outside])
        assert not np.array_equal(before[6, 10], after[6, 10])


class TestHealBrush:
    """Tests for apply_heal."""

    def test_speck_is_replaced_by_surroundings(self):
        buffer = make_speck()
        RetouchSession(buffer).apply_heal((10, 10), radius=2)

        assert buffer.get_pixel(10, 10) == (100, 100, 100, 255)
        assert buffer == PixelBuffer.blank(20, 20, (100, 100, 100, 255))

    def test_half_opacity_blends(self):
        buffer = make_speck()
        RetouchSession(buffer).apply_heal((10, 10), radius=2, opacity=50)

        # 255 * 0.5 + 100 * 0.5 = 177.5 rounds up
        assert buffer.get_pixel(10, 10) == (178, 50, 50, 255)

    def test_heal_keeps_alpha(self):
        buffer = PixelBuffer.blank(12, 12, (40, 40, 40, 90))
        buffer.set_pixel(6, 6, (200, 10, 10, 90))
        RetouchSession(buffer).apply_heal((6, 6), radius=2)

        assert buffer.get_pixel(6, 6) == (40, 40, 40, 90)

    def test_uniform_area_unchanged(self):
        buffer = PixelBuffer.blank(10, 10, (7, 8, 9, 255))
        original = buffer.copy()
        RetouchSession(buffer).apply_stroke([(0, 0), (5, 5), (9, 9)], tool="heal", radius=3)

        assert buffer == original

    def test_heal_is_undoable(self):
        buffer = make_speck()
        original = buffer.copy()
        session = RetouchSession(buffer)
        session.apply_stroke([(10, 10)], tool="heal", radius=2)

        assert session.undo()
        assert buffer == original


class TestSmudge:
    """Tests for apply_smudge."""

    def test_first_dab_only_records_position(self):
        original = make_vertical_edge()
        buffer = original.copy()
        RetouchSession(buffer).apply_stroke([(12, 10)], tool="smudge", radius=2)

        assert buffer == original

    def test_drags_previous_area(self):
        buffer = make_vertical_edge()
        RetouchSession(buffer).apply_stroke([(12, 10), (8, 10)], tool="smudge", radius=2)

        # (8, 10) takes (12, 10) and (6, 10) takes (10, 10), both white
        assert buffer.get_pixel(8, 10) == (255, 255, 255, 255)
        assert buffer.get_pixel(6, 10) == (255, 255, 255, 255)
        assert buffer.get_pixel(8, 13) == (0, 0, 0, 255)

    def test_half_opacity_blends(self):
        buffer = make_vertical_edge()
        RetouchSession(buffer).apply_stroke(
            [(12, 10), (8, 10)], tool="smudge", radius=2, opacity=50
        )

        assert buffer.get_pixel(8, 10) == (128, 128, 128, 255)

    def test_smudge_reads_live_buffer(self):
        buffer = make_vertical_edge()
        RetouchSession(buffer).apply_stroke(
            [(12, 10), (8, 10), (4, 10)], tool="smudge", radius=1
        )

        # The third dab picks up the white carried over by the second
        assert buffer.get_pixel(4, 10) == (255, 255, 255, 255)


class TestOpacity:
    """Tests for the per-dab blend."""

    def test_clone_half_opacity(self):
        buffer = make_vertical_edge()
        session = RetouchSession(buffer)
        session.set_clone_source((15, 10))

        session.apply_clone((4, 10), radius=1, opacity=50)

        assert buffer.get_pixel(4, 10) == (128, 128, 128, 255)

    def test_zero_opacity_is_noop(self):
        original = make_vertical_edge()
        buffer = original.copy()
        RetouchSession(buffer).apply_blur((10, 10), radius=4, strength=2, opacity=0)

        assert buffer == original

    def test_blur_opacity_between_original_and_full(self):
        original = make_vertical_edge()
        full = original.copy()
        RetouchSession(full).apply_blur((10, 10), radius=4, strength=2)
        half = original.copy()
        RetouchSession(half).apply_blur((10, 10), radius=4, strength=2, opacity=50)

        lo = np.minimum(original.to_array(), full.to_array())
        hi = np.maximum(original.to_array(), full.to_array())
        arr = half.to_array()
        assert ((arr >= lo) & (arr <= hi)).all()
        assert half != full

    @pytest.mark.parametrize("opacity", [-1, 101, "50", True])
    def test_invalid_opacity(self, opacity):
        session = RetouchSession(make_vertical_edge())
        with pytest.raises(ParameterError):
            session.apply_stroke([(5, 5)], tool="blur", radius=2, opacity=opacity)
        assert not session.can_undo()


class TestHistory:
    """Tests for undo and redo."""

    def test_undo_restores_previous_state(self):
        original = make_vertical_edge()
        buffer = original.copy()
        session = RetouchSession(buffer)
        assert not session.can_undo()

        session.apply_stroke([(10, 10), (10, 12)], tool="blur", radius=4, strength=2)
        blurred = buffer.copy()

        assert session.undo()
        assert buffer == original
        assert session.redo()
        assert buffer == blurred

    def test_undo_empty(self):
        session = RetouchSession(make_vertical_edge())
        assert session.undo() is False
        assert session.redo() is False

    def test_new_stroke_clears_redo(self):
        session = RetouchSession(make_vertical_edge())
        session.apply_blur((10, 10), radius=3, strength=1)
        session.undo()
        assert session.can_redo()

        session.apply_blur((5, 5), radius=3, strength=1)
        assert not session.can_redo()

    def test_history_limit(self):
        session = RetouchSession(make_vertical_edge(), history_limit=2)
        for y in (4, 8, 12):
            session.apply_blur((10, y), radius=2, strength=1)

        assert session.undo()
        assert session.undo()
        assert not session.undo()

    def test_export_is_copy(self):
        buffer = make_vertical_edge()
        session = RetouchSession(buffer)
        exported = session.export()
        exported.set_pixel(0, 0, (1, 2, 3, 4))

        assert buffer.get_pixel(0, 0) != (1, 2, 3, 4)


class TestApplyStroke:
    """Tests for whole-drag application."""

    def test_unknown_tool(self):
        session = RetouchSession(make_unique())
        with pytest.raises(ParameterError):
            session.apply_stroke([(1, 1)], tool="airbrush", radius=3)
        assert not session.can_undo()

    def test_stroke_ends_after_apply(self):
        session = RetouchSession(make_unique())
        session.apply_stroke([(5, 5)], tool="blur", radius=2, strength=1)
        assert not session.in_stroke

    def test_rejects_non_buffer(self):
        with pytest.raises(ParameterError):
            RetouchSession("not_a_buffer")
