"""
Unit tests for the JIT-compiled per-pixel functions.
Run from project root: python -m pytest tests/ -v
"""
import math
import unittest

import numpy as np

from scanbrot.compute import (
    BLEND_FRACTIONAL,
    BLEND_REFERENCE,
    colorize,
    cosine_interpolation,
    linear_interpolation,
    mandel_iteration,
    pack_rgba,
    render_row,
    render_rows,
    render_rows_serial,
    scale_channel,
    unpack_rgb,
)


def _gradient(*rows):
    return np.array(rows, dtype=np.uint8)


GRADIENT = _gradient(
    (10, 20, 30, 255),
    (40, 50, 60, 255),
    (70, 80, 90, 255),
)


class TestPackedColors(unittest.TestCase):
    """Channel scaling, packing and unpacking."""

    def test_scale_channel(self):
        self.assertEqual(scale_channel(0), 0)
        self.assertEqual(scale_channel(127), 127)
        self.assertEqual(scale_channel(128), 129)
        self.assertEqual(scale_channel(255), 257)

    def test_pack_opaque_black(self):
        # 255 alpha scales to 257, whose high bit lands in the blue byte
        self.assertEqual(pack_rgba(0, 0, 0, 255), 0x101)

    def test_pack_white_wraps(self):
        self.assertEqual(pack_rgba(255, 255, 255, 255), 0x01010101)
        self.assertEqual(unpack_rgb(pack_rgba(255, 255, 255, 255)), (1, 1, 1))

    def test_pack_unpack_low_channels(self):
        self.assertEqual(pack_rgba(10, 20, 30, 0), 0x0A141E00)
        self.assertEqual(unpack_rgb(0x0A141E00), (10, 20, 30))


class TestInterpolation(unittest.TestCase):

    def test_cosine_endpoints(self):
        self.assertEqual(cosine_interpolation(10.0, 20.0, 0.0), 10.0)
        self.assertEqual(cosine_interpolation(10.0, 20.0, 1.0), 20.0)
        self.assertAlmostEqual(cosine_interpolation(10.0, 20.0, 0.5), 15.0)

    def test_linear_weights_zero_and_one(self):
        self.assertEqual(linear_interpolation(1234, 5678, 0), 1234)
        self.assertEqual(linear_interpolation(1234, 5678, 1), 5678)

    def test_linear_wraps_in_32_bits(self):
        self.assertEqual(linear_interpolation(10, 20, 2), 30)
        self.assertEqual(linear_interpolation(1, 0, 2), 0xFFFFFFFF)
        self.assertEqual(linear_interpolation(0, 1, 0xFFFFFFFF), 0xFFFFFFFF)

    def test_linear_large_operands(self):
        c1, c2, mu = 0xDEADBEEF, 0x01020304, 12345
        expected = (c1 * (1 - mu) + c2 * mu) % 2 ** 32
        self.assertEqual(linear_interpolation(c1, c2, mu), expected)


class TestEscapeTime(unittest.TestCase):

    def test_origin_never_escapes(self):
        norm_sq, iterations = mandel_iteration(0.0, 0.0, 50)
        self.assertEqual(iterations, 50)
        self.assertEqual(norm_sq, 0.0)

    def test_far_point_escapes_immediately(self):
        norm_sq, iterations = mandel_iteration(2.0, 2.0, 50)
        self.assertEqual(iterations, 1)
        self.assertEqual(norm_sq, 8.0)
        self.assertGreater(norm_sq, 4.0)

    def test_period_two_orbit_halves_norm(self):
        # c = -1 alternates between 0 and -1
        self.assertEqual(mandel_iteration(-1.0, 0.0, 10), (0.0, 10))
        self.assertEqual(mandel_iteration(-1.0, 0.0, 11), (0.5, 11))

    def test_terminates_within_cap(self):
        for cx in np.linspace(-2.0, 1.0, 13):
            _, iterations = mandel_iteration(float(cx), 0.3, 25)
            self.assertLessEqual(iterations, 25)


class TestColorize(unittest.TestCase):

    def test_weight_zero_returns_first_color(self):
        # smoothed = ln(e^0.5) -> index 0, weight 0; blue picks up the alpha carry
        hit, r, g, b = colorize(math.exp(0.5), 1, 1, GRADIENT, BLEND_REFERENCE)
        self.assertTrue(hit)
        self.assertEqual((r, g, b), (10, 20, 31))

    def test_weight_one_returns_second_color(self):
        hit, r, g, b = colorize(math.exp(1.5), 1, 1, GRADIENT, BLEND_REFERENCE)
        self.assertTrue(hit)
        self.assertEqual((r, g, b), (70, 80, 91))

    def test_negative_index_wraps_weight(self):
        # smoothed = -1.5 -> index 1, weight uint32(-1)
        hit, r, g, b = colorize(math.exp(-1.5), 1, 1, GRADIENT, BLEND_REFERENCE)
        p1 = pack_rgba(40, 50, 60, 255)
        p2 = pack_rgba(70, 80, 90, 255)
        self.assertTrue(hit)
        self.assertEqual((r, g, b), unpack_rgb((2 * p1 - p2) & 0xFFFFFFFF))

    def test_index_past_end_is_miss(self):
        # smoothed = 2 + ln(8) ~ 4.08, gradient only has 3 entries
        hit, _, _, _ = colorize(8.0, 1, 3, GRADIENT, BLEND_REFERENCE)
        self.assertFalse(hit)

    def test_last_entry_is_never_a_start_index(self):
        hit, _, _, _ = colorize(1.0, 0, 2, GRADIENT, BLEND_REFERENCE)
        self.assertFalse(hit)

    def test_zero_norm_is_miss(self):
        self.assertFalse(colorize(0.0, 50, 50, GRADIENT, BLEND_REFERENCE)[0])
        self.assertFalse(colorize(0.0, 50, 50, GRADIENT, BLEND_FRACTIONAL)[0])

    def test_fractional_integer_index_returns_entry(self):
        hit, r, g, b = colorize(1.0, 0, 1, GRADIENT, BLEND_FRACTIONAL)
        self.assertTrue(hit)
        self.assertEqual((r, g, b), (40, 50, 60))

    def test_fractional_stays_between_neighbours(self):
        hit, r, g, b = colorize(math.exp(0.25), 1, 2, GRADIENT, BLEND_FRACTIONAL)
        self.assertTrue(hit)
        self.assertTrue(40 <= r <= 70)
        self.assertTrue(50 <= g <= 80)
        self.assertTrue(60 <= b <= 90)

    def test_hits_only_inside_gradient(self):
        gradient = np.tile(np.array([[5, 6, 7, 255]], dtype=np.uint8), (10, 1))
        max_iter = 30
        for cx in np.linspace(-2.0, 1.0, 31):
            for cy in np.linspace(-1.5, 1.5, 31):
                norm_sq, iterations = mandel_iteration(float(cx), float(cy), max_iter)
                hit, _, _, _ = colorize(norm_sq, iterations, max_iter, gradient, BLEND_REFERENCE)
                if norm_sq <= 0.0:
                    self.assertFalse(hit)
                    continue
                smoothed = (max_iter - iterations) + math.log(norm_sq)
                self.assertEqual(hit, int(abs(smoothed)) < len(gradient) - 1)


class TestRowKernels(unittest.TestCase):

    def _args(self, out):
        gradient = np.tile(np.array([[30, 60, 90, 255]], dtype=np.uint8), (64, 1))
        return (-2.0, 1.0, -1.5, 1.5, 40, gradient, BLEND_REFERENCE, out)

    def test_row_task_writes_only_its_row(self):
        out = np.zeros((6, 6, 4), dtype=np.uint8)
        xmin, xmax, ymin, ymax, max_iter, gradient, blend, _ = self._args(out)
        render_row(2, xmin, xmax, ymin, ymax, max_iter, gradient, blend, out)
        for iy in (0, 1, 3, 4, 5):
            self.assertFalse(out[iy].any())
        self.assertTrue(out[2].any())

    def test_parallel_matches_serial(self):
        parallel = np.zeros((24, 32, 4), dtype=np.uint8)
        serial = np.zeros((24, 32, 4), dtype=np.uint8)
        render_rows(*self._args(parallel))
        render_rows_serial(*self._args(serial))
        np.testing.assert_array_equal(parallel, serial)

    def test_untouched_pixels_stay_transparent(self):
        out = np.zeros((16, 16, 4), dtype=np.uint8)
        render_rows_serial(*self._args(out))
        alpha = out[..., 3]
        self.assertTrue(np.all((alpha == 0) | (alpha == 255)))
        self.assertFalse(out[alpha == 0].any())


if __name__ == "__main__":
    unittest.main()
