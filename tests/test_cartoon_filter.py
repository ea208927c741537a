"""
Tests for Cartoon Operations.

Tests cover:
- Box blur with edge clamping
- Sobel edge magnitude
- Posterize
- Full cartoon stylization, including the saturation pre-adjustment
- Error handling
"""

import unittest

import numpy as np

from PX_Libs.errors import ParameterError
from PX_Libs.ImageEditingLib.cartoon_filter import (
    box_blur,
    posterize,
    sobel_magnitude,
    stylize,
)
from PX_Libs.ImageEditingLib.image_models import PixelBuffer


def make_checkerboard(size=4):
    pixels = bytearray()
    for y in range(size):
        for x in range(size):
            value = 255 if (x + y) % 2 else 0
            pixels += bytes((value, value, value, 255))
    return PixelBuffer(size, size, pixels)


def make_vertical_edge(width=8, height=8):
    """Black left half, white right half."""
    pixels = bytearray()
    for y in range(height):
        for x in range(width):
            value = 255 if x >= width // 2 else 0
            pixels += bytes((value, value, value, 255))
    return PixelBuffer(width, height, pixels)


class TestBoxBlur(unittest.TestCase):
    """Test the box blur stage."""

    def test_radius_zero_is_copy(self):
        rgba = make_checkerboard().to_array()
        result = box_blur(rgba, 0)

        self.assertTrue(np.array_equal(result, rgba))
        self.assertIsNot(result, rgba)

    def test_single_bright_pixel(self):
        rgba = np.zeros((3, 3, 4), dtype=np.uint8)
        rgba[1, 1] = (255, 255, 255, 77)
        result = box_blur(rgba, 1)

        # 255 / 9 = 28.33
        self.assertEqual(result[1, 1, :3].tolist(), [28, 28, 28])
        self.assertEqual(result[1, 1, 3], 77)

    def test_edges_clamped(self):
        rgba = np.zeros((1, 3, 4), dtype=np.uint8)
        rgba[0, :, 0] = (0, 90, 180)
        result = box_blur(rgba, 1)

        self.assertEqual(result[0, :, 0].tolist(), [30, 90, 150])

    def test_uniform_unchanged(self):
        rgba = np.full((5, 7, 4), 123, dtype=np.uint8)
        self.assertTrue(np.array_equal(box_blur(rgba, 3), rgba))


class TestSobelAndPosterize(unittest.TestCase):
    """Test edge detection and posterization."""

    def test_checkerboard_has_no_gradient(self):
        edges = sobel_magnitude(make_checkerboard().to_array())
        self.assertTrue((edges == 0).all())

    def test_vertical_edge_detected(self):
        edges = sobel_magnitude(make_vertical_edge().to_array())

        self.assertEqual(edges[3, 4], 255)
        self.assertEqual(edges[3, 1], 0)

    def test_borders_are_zero(self):
        edges = sobel_magnitude(make_vertical_edge().to_array())
        self.assertTrue((edges[0, :] == 0).all())
        self.assertTrue((edges[:, -1] == 0).all())

    def test_tiny_image(self):
        edges = sobel_magnitude(np.zeros((2, 5, 4), dtype=np.uint8))
        self.assertEqual(edges.shape, (2, 5))
        self.assertTrue((edges == 0).all())

    def test_posterize_levels(self):
        rgba = np.zeros((1, 1, 4), dtype=np.uint8)
        rgba[0, 0] = (100, 150, 200, 9)
        result = posterize(rgba, 6)

        # step = 51
        self.assertEqual(result[0, 0].tolist(), [102, 153, 204, 9])


class TestStylize(unittest.TestCase):
    """Test the full cartoon pipeline."""

    def test_checkerboard_two_colors(self):
        result = stylize(make_checkerboard(), levels=6, edge_threshold=40, blur_radius=0)
        colors = {result.get_pixel(x, y) for y in range(4) for x in range(4)}

        self.assertEqual(colors, {(0, 0, 0, 255), (255, 255, 255, 255)})

    def test_deterministic(self):
        buffer = make_vertical_edge(12, 9)
        self.assertEqual(stylize(buffer), stylize(buffer))

    def test_uniform_color(self):
        buffer = PixelBuffer.blank(6, 6, (100, 150, 200, 40))
        result = stylize(buffer, levels=6)

        self.assertEqual(result.get_pixel(3, 3), (102, 153, 204, 255))

    def test_edges_inked(self):
        result = stylize(make_vertical_edge(), blur_radius=0, ink_strength=0.6)

        # Full-strength edge: 255 * (1 - 0.6) = 102
        self.assertEqual(result.get_pixel(4, 3), (102, 102, 102, 255))
        self.assertEqual(result.get_pixel(3, 3), (0, 0, 0, 255))
        self.assertEqual(result.get_pixel(6, 3), (255, 255, 255, 255))

    def test_zero_ink_strength(self):
        result = stylize(make_vertical_edge(), blur_radius=0, ink_strength=0.0)
        self.assertEqual(result.get_pixel(4, 3), (255, 255, 255, 255))

    def test_threshold_255_disables_ink(self):
        result = stylize(make_vertical_edge(), blur_radius=0, edge_threshold=255)
        self.assertEqual(result.get_pixel(4, 3), (255, 255, 255, 255))

    def test_zero_saturation_is_gray(self):
        pixels = bytearray()
        for y in range(6):
            for x in range(6):
                pixels += bytes((40 * x, 200 - 30 * y, 90, 255))
        result = stylize(PixelBuffer(6, 6, pixels), saturation=0)
        array = result.to_array()

        self.assertTrue(np.array_equal(array[..., 0], array[..., 1]))
        self.assertTrue(np.array_equal(array[..., 1], array[..., 2]))

    def test_saturation_boost_spreads_channels(self):
        buffer = PixelBuffer.blank(4, 4, (100, 150, 200, 255))
        plain = stylize(buffer, levels=256, blur_radius=0).get_pixel(1, 1)
        boosted = stylize(buffer, levels=256, blur_radius=0, saturation=200).get_pixel(1, 1)

        self.assertEqual(plain, (100, 150, 200, 255))
        self.assertGreater(max(boosted[:3]) - min(boosted[:3]), 100)
        self.assertLess(boosted[0], 100)

    def test_output_opaque_and_input_untouched(self):
        buffer = PixelBuffer.blank(5, 5, (10, 20, 30, 0))
        before = bytes(buffer.pixels)
        result = stylize(buffer)

        self.assertTrue((result.to_array()[..., 3] == 255).all())
        self.assertEqual(bytes(buffer.pixels), before)

    def test_invalid_parameters(self):
        buffer = make_checkerboard()
        bad = [
            {"levels": 1},
            {"edge_threshold": 300},
            {"blur_radius": -1},
            {"blur_radius": 51},
            {"ink_strength": 1.5},
            {"edge_thickness": 0},
            {"saturation": -1},
        ]
        for params in bad:
            with self.assertRaises(ParameterError, msg=str(params)):
                stylize(buffer, **params)

    def test_invalid_buffer(self):
        with self.assertRaises(ParameterError):
            stylize("not_a_buffer")
