"""Tests for colour histogram feature extraction."""

import numpy as np
import pytest

from imgdb.dedup.histogram import (
    ColorHistogram,
    feature_from_bytes,
    feature_to_bytes,
    generate_feature,
)
from imgdb.imaging.decoder import DecodedImage, decode_image
from tests.helpers.image_factory import make_image_bytes, make_striped_image_bytes

# Expected non-zero bin for solid colours with 2x2x2 and 8x8x8 bins
COLOR_BINS = {
    "black": (0, 0),
    "red": (1, 7),
    "lime": (2, 56),
    "yellow": (3, 63),
    "blue": (4, 448),
    "magenta": (5, 455),
    "cyan": (6, 504),
    "white": (7, 511),
}


def _solid(color: str, fmt: str = "PNG") -> DecodedImage:
    return decode_image(make_image_bytes(color, fmt=fmt))


class TestColorHistogram:
    def test_size(self):
        assert ColorHistogram(8, 8, 8).size == 512
        assert ColorHistogram(2, 3, 4).size == 24

    @pytest.mark.parametrize("color", sorted(COLOR_BINS))
    def test_solid_colors_two_bins(self, color):
        """Each primary/secondary colour fills exactly one 2x2x2 cell."""
        feature = ColorHistogram(2, 2, 2).describe(_solid(color).pixels)

        expected = np.zeros(8, dtype=np.float32)
        expected[COLOR_BINS[color][0]] = 1.0
        np.testing.assert_array_equal(feature, expected)

    @pytest.mark.parametrize("color", sorted(COLOR_BINS))
    def test_solid_colors_eight_bins(self, color):
        feature = ColorHistogram(8, 8, 8).describe(_solid(color).pixels)

        assert feature.shape == (512,)
        assert feature[COLOR_BINS[color][1]] == 1.0
        assert np.count_nonzero(feature) == 1

    def test_solid_red_100x100(self):
        image = decode_image(make_image_bytes("red", size=(100, 100)))
        feature = ColorHistogram(2, 2, 2).describe(image.pixels)

        assert feature.tolist() == [0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0]

    def test_feature_is_normalized(self):
        pixels = make_striped_image_bytes([(255, 0, 0), (0, 0, 255), (0, 255, 0), (10, 10, 10)])
        feature = ColorHistogram(8, 8, 8).describe(decode_image(pixels).pixels)

        assert feature.dtype == np.float32
        assert abs(float(feature.sum()) - 1.0) < 1e-6
        assert np.all(feature >= 0)
        assert np.count_nonzero(feature) == 4
        np.testing.assert_allclose(feature[[7, 448, 56, 0]], [0.25, 0.25, 0.25, 0.25])

    def test_uneven_bins_stay_in_range(self):
        """Bin counts that do not divide the channel range still index inside the vector."""
        feature = ColorHistogram(3, 3, 3).describe(_solid("white").pixels)

        assert feature.shape == (27,)
        assert feature[26] == 1.0

    def test_describe_is_deterministic(self):
        data = make_striped_image_bytes([(200, 30, 90), (12, 250, 7), (60, 60, 200)])
        first = ColorHistogram(8, 8, 8).describe(decode_image(data).pixels)
        second = ColorHistogram(8, 8, 8).describe(decode_image(data).pixels)

        assert feature_to_bytes(first) == feature_to_bytes(second)

    def test_empty_pixels_rejected(self):
        with pytest.raises(ValueError):
            ColorHistogram(2, 2, 2).describe(np.zeros((0, 0, 3), dtype=np.uint16))


class TestGenerateFeature:
    def test_unsupported_format_returns_none(self):
        image = decode_image(make_image_bytes("red", fmt="GIF"))
        assert image.format == "gif"
        assert generate_feature(image) is None

    @pytest.mark.parametrize("fmt", ["PNG", "JPEG"])
    def test_supported_formats(self, fmt):
        feature = generate_feature(_solid("red", fmt=fmt))

        assert feature is not None
        assert feature.shape == (512,)
        assert feature[7] == 1.0

    def test_custom_bins_and_formats(self):
        image = decode_image(make_image_bytes("blue", fmt="GIF"))
        feature = generate_feature(image, bins=(2, 2, 2), formats=("gif",))

        assert feature is not None
        assert feature.tolist() == [0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0]


class TestFeatureBytes:
    def test_layout_is_little_endian_float32(self):
        data = feature_to_bytes([1.0, 0.5])
        assert data == b"\x00\x00\x80\x3f\x00\x00\x00\x3f"

    def test_length_gives_bin_count(self):
        feature = generate_feature(_solid("cyan"))
        data = feature_to_bytes(feature)

        assert len(data) == 512 * 4
        restored = feature_from_bytes(data)
        assert restored.shape == (512,)
        np.testing.assert_array_equal(restored, feature)

    def test_empty_bytes(self):
        assert feature_from_bytes(b"").shape == (0,)

    def test_truncated_bytes_rejected(self):
        with pytest.raises(ValueError):
            feature_from_bytes(b"\x00\x00\x80")
