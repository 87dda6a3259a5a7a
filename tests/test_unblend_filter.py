"""
Tests for the Unblend Filter.

Tests cover:
- Per-channel inverse blend and clamping
- Masked and unmasked pixels
- Round trip through the forward blend
- Row order, thread shards and the numpy backend
- Option validation and error handling
"""

import math
import random
import unittest

import pytest

from UB_Libs.ImageEditingLib.errors import (
    DegenerateAlphaError,
    DimensionMismatchError,
    InvalidOverlayColorError,
)
from UB_Libs.ImageEditingLib.image_models import BLACK, WHITE, Pixel, PixelBuffer
from UB_Libs.ImageEditingLib.unblend_filter import (
    UnblendFilter,
    UnblendOptions,
    blend,
    get_available_backends,
    unblend,
)


class TestUnblendScenarios(unittest.TestCase):
    """Known input/output pairs."""

    def setUp(self):
        self.filter = UnblendFilter()
        self.options = UnblendOptions(alpha=0.5, overlay_color=(255, 255, 255))
        self.composite = PixelBuffer(1, 1, bytes([200, 200, 200]))

    def test_white_overlay_half_alpha(self):
        mask = PixelBuffer(1, 1)
        mask.fill(WHITE)

        result = self.filter.unblend_buffer(self.composite, mask, self.options)

        self.assertEqual(result.get_pixel(0, 0), Pixel(145, 145, 145))

    def test_black_mask_leaves_pixel(self):
        mask = PixelBuffer(1, 1)

        result = self.filter.unblend_buffer(self.composite, mask, self.options)

        self.assertEqual(result.get_pixel(0, 0), Pixel(200, 200, 200))

    def test_any_non_black_mask_value_recovers(self):
        mask = PixelBuffer(1, 1, bytes([0, 0, 1]))

        result = self.filter.unblend_buffer(self.composite, mask, self.options)

        self.assertEqual(result.get_pixel(0, 0), Pixel(145, 145, 145))

    def test_composite_not_modified(self):
        mask = PixelBuffer(1, 1)
        mask.fill(WHITE)

        self.filter.unblend_buffer(self.composite, mask, self.options)

        self.assertEqual(self.composite.get_pixel(0, 0), Pixel(200, 200, 200))

    def test_alpha_one_is_identity(self):
        options = UnblendOptions(alpha=1.0, overlay_color=(12, 34, 56))
        self.assertEqual(
            self.filter.unblend_pixel((1, 128, 255), options),
            Pixel(1, 128, 255),
        )

    def test_channels_use_their_own_overlay_value(self):
        options = UnblendOptions(alpha=0.5, overlay_color=(0, 100, 200))
        # r: 100/0.5 = 200, g: (100-50)/0.5 = 100, b: (150-100)/0.5 = 100
        self.assertEqual(
            self.filter.unblend_pixel((100, 100, 150), options),
            Pixel(200, 100, 100),
        )


class TestClamping:
    """Values outside 0-255 are clamped, never wrapped."""

    def test_clamps_below_zero(self):
        options = UnblendOptions(alpha=0.5, overlay_color=(255, 255, 255))
        # (0 - 127.5) / 0.5 = -255
        assert UnblendFilter().unblend_pixel((0, 0, 0), options) == BLACK

    def test_clamps_above_255(self):
        options = UnblendOptions(alpha=0.5, overlay_color=(0, 0, 0))
        # 255 / 0.5 = 510
        assert UnblendFilter().unblend_pixel((255, 255, 255), options) == WHITE

    def test_clamps_each_channel_independently(self):
        options = UnblendOptions(alpha=0.5, overlay_color=(255, 0, 128))
        assert UnblendFilter().unblend_pixel((10, 200, 64), options) == Pixel(0, 255, 0)


class TestRounding:
    """Narrowing of the clamped float."""

    def test_truncate_drops_fraction(self):
        # (100 - 0.25 * 50) / 0.75 = 116.666...
        assert UnblendFilter().unblend_channel(100, 50, 0.75, "truncate") == 116

    def test_nearest_rounds(self):
        assert UnblendFilter().unblend_channel(100, 50, 0.75, "nearest") == 117

    def test_truncate_is_default(self):
        options = UnblendOptions(alpha=0.75, overlay_color=(50, 50, 50))
        assert options.rounding == "truncate"
        assert UnblendFilter().unblend_pixel((100, 100, 100), options) == Pixel(116, 116, 116)

    def test_nan_clamps_to_zero(self):
        assert UnblendFilter()._clamp_channel(math.nan) == 0.0

    def test_infinity_clamps(self):
        assert UnblendFilter()._clamp_channel(math.inf) == 255.0
        assert UnblendFilter()._clamp_channel(-math.inf) == 0.0


class TestRoundTrip:
    """Blending then unblending recovers the original within rounding."""

    @pytest.mark.parametrize("alpha", [0.5, 0.6, 0.75, 0.9, 1.0])
    @pytest.mark.parametrize("rounding", ["truncate", "nearest"])
    @pytest.mark.parametrize("overlay", [(255, 255, 255), (0, 0, 0), (30, 140, 220)])
    def test_round_trip_within_one(self, random_buffer, alpha, rounding, overlay):
        original = random_buffer(8, 6, seed=11)
        mask = PixelBuffer(8, 6)
        mask.fill(WHITE)
        options = UnblendOptions(alpha=alpha, overlay_color=overlay, rounding=rounding)
        engine = UnblendFilter()

        composite = engine.blend_buffer(original, mask, options)
        recovered = engine.unblend_buffer(composite, mask, options)

        for (_, _, expected), actual in zip(original, recovered.pixels):
            for channel_expected, channel_actual in zip(expected, actual):
                assert abs(channel_expected - channel_actual) <= 1

    def test_blend_only_touches_masked_pixels(self, random_buffer, checker_mask):
        original = random_buffer(4, 4, seed=5)
        mask = checker_mask(4, 4)

        composite = blend(original, mask, 0.5, (255, 255, 255))

        for x, y, mask_pixel in mask:
            if mask_pixel == BLACK:
                assert composite.get_pixel(x, y) == original.get_pixel(x, y)


class TestMaskPassThrough:
    """All-black masks leave the composite untouched."""

    @pytest.mark.parametrize("backend", ["python", "numpy"])
    def test_black_mask_returns_composite(self, random_buffer, backend):
        composite = random_buffer(7, 5, seed=2)
        mask = PixelBuffer(7, 5)

        result = unblend(composite, mask, 0.3, (10, 20, 30), backend=backend)

        assert result == composite
        assert result is not composite


class TestPerPixelIndependence:
    """Row order, sharding and backend do not change the output."""

    def setup_method(self):
        self.engine = UnblendFilter()
        self.options = UnblendOptions(alpha=0.35, overlay_color=(240, 17, 99))

    def test_reverse_row_order_matches(self, random_buffer, checker_mask):
        composite = random_buffer(9, 7, seed=8)
        mask = checker_mask(9, 7)

        sequential = self.engine.unblend_buffer(composite, mask, self.options)

        reversed_result = composite.copy()
        self.engine.unblend_rows(
            composite, mask, self.options, reversed(range(composite.height)), reversed_result
        )

        assert reversed_result == sequential

    def test_shuffled_rows_match(self, random_buffer, checker_mask):
        composite = random_buffer(6, 10, seed=9)
        mask = checker_mask(6, 10)
        rows = list(range(10))
        random.Random(4).shuffle(rows)

        sequential = self.engine.unblend_buffer(composite, mask, self.options)
        shuffled = composite.copy()
        for row in rows:
            self.engine.unblend_rows(composite, mask, self.options, [row], shuffled)

        assert shuffled == sequential

    @pytest.mark.parametrize("workers", [2, 3, 16])
    def test_threaded_matches_sequential(self, random_buffer, checker_mask, workers):
        composite = random_buffer(11, 13, seed=12)
        mask = checker_mask(11, 13)

        sequential = self.engine.unblend_buffer(composite, mask, self.options)
        threaded = self.engine.unblend_buffer(composite, mask, self.options, workers=workers)

        assert threaded == sequential

    @pytest.mark.parametrize("alpha", [0.1, 0.35, 0.5, 0.77, 1.0])
    @pytest.mark.parametrize("rounding", ["truncate", "nearest"])
    def test_numpy_backend_matches_python(self, random_buffer, checker_mask, alpha, rounding):
        composite = random_buffer(12, 9, seed=21)
        mask = checker_mask(12, 9)
        options = UnblendOptions(alpha=alpha, overlay_color=(200, 60, 5), rounding=rounding)

        python_result = self.engine.unblend_buffer(composite, mask, options, backend="python")
        numpy_result = self.engine.unblend_buffer(composite, mask, options, backend="numpy")

        assert numpy_result == python_result

    def test_row_shards_cover_every_row_once(self):
        shards = self.engine._row_shards(10, 3)
        rows = [row for shard in shards for row in shard]
        assert rows == list(range(10))


class TestUnblendErrors(unittest.TestCase):
    """Failures surface as typed errors before any pixel is processed."""

    def test_dimension_mismatch(self):
        composite = PixelBuffer(3, 3)
        mask = PixelBuffer(3, 2)

        with self.assertRaises(DimensionMismatchError) as ctx:
            unblend(composite, mask, 0.5, (255, 255, 255))

        self.assertEqual(ctx.exception.composite_size, (3, 3))
        self.assertEqual(ctx.exception.mask_size, (3, 2))

    def test_dimension_mismatch_numpy(self):
        with self.assertRaises(DimensionMismatchError):
            unblend(PixelBuffer(2, 2), PixelBuffer(2, 3), 0.5, (0, 0, 0), backend="numpy")

    def test_blend_dimension_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            blend(PixelBuffer(2, 2), PixelBuffer(1, 2), 0.5, (0, 0, 0))

    def test_zero_alpha(self):
        with self.assertRaises(DegenerateAlphaError):
            unblend(PixelBuffer(1, 1), PixelBuffer(1, 1), 0, (255, 255, 255))

    def test_invalid_backend(self):
        options = UnblendOptions(alpha=0.5)
        with self.assertRaises(ValueError):
            UnblendFilter().unblend_buffer(PixelBuffer(1, 1), PixelBuffer(1, 1), options, backend="gpu")

    def test_invalid_workers(self):
        options = UnblendOptions(alpha=0.5)
        with self.assertRaises(ValueError):
            UnblendFilter().unblend_buffer(PixelBuffer(1, 1), PixelBuffer(1, 1), options, workers=0)


class TestUnblendOptions:
    """Validation of the compositing parameters."""

    @pytest.mark.parametrize("alpha", [0, 0.0, -0.5, 1.0001, 2, math.nan, math.inf, "0.5", None, True])
    def test_degenerate_alpha(self, alpha):
        with pytest.raises(DegenerateAlphaError):
            UnblendOptions(alpha=alpha)

    def test_degenerate_alpha_is_value_error(self):
        with pytest.raises(ValueError):
            UnblendOptions(alpha=0)

    @pytest.mark.parametrize("alpha", [1e-6, 0.5, 1, 1.0])
    def test_valid_alpha(self, alpha):
        assert UnblendOptions(alpha=alpha).alpha == float(alpha)

    @pytest.mark.parametrize("color", [
        (256, 0, 0),
        (0, -1, 0),
        (0, 0),
        (0, 0, 0, 0),
        (0.5, 0, 0),
        "abc",
        None,
    ])
    def test_invalid_overlay_color(self, color):
        with pytest.raises(InvalidOverlayColorError):
            UnblendOptions(alpha=0.5, overlay_color=color)

    def test_overlay_color_stored_as_pixel(self):
        options = UnblendOptions(alpha=0.5, overlay_color=[1, 2, 3])
        assert options.overlay_color == Pixel(1, 2, 3)

    def test_invalid_rounding(self):
        with pytest.raises(ValueError):
            UnblendOptions(alpha=0.5, rounding="ceil")

    def test_is_frozen(self):
        options = UnblendOptions(alpha=0.5)
        with pytest.raises(AttributeError):
            options.alpha = 0.7

    def test_dict_round_trip(self):
        options = UnblendOptions(alpha=0.25, overlay_color=(9, 8, 7), rounding="nearest")
        data = options.to_dict()

        assert data == {"alpha": 0.25, "overlay_color": [9, 8, 7], "rounding": "nearest"}
        assert UnblendOptions.from_dict(dict(data, extra="ignored")) == options


class TestHelpers:
    """Small helper methods."""

    def test_is_masked(self):
        engine = UnblendFilter()
        assert engine.is_masked((255, 255, 255))
        assert engine.is_masked((1, 0, 0))
        assert not engine.is_masked((0, 0, 0))

    def test_count_masked(self, checker_mask):
        assert UnblendFilter().count_masked(checker_mask(4, 4)) == 8

    def test_available_backends(self):
        assert get_available_backends() == ["python", "numpy"]
