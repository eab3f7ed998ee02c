"""RGB colour histogram features and their byte encoding."""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from ..logging import get_logger

if TYPE_CHECKING:
    from ..imaging.decoder import DecodedImage

logger = get_logger(__name__)

CHANNEL_LIMIT = 65535
DEFAULT_BINS: Tuple[int, int, int] = (8, 8, 8)
SUPPORTED_FORMATS: Tuple[str, ...] = ("png", "jpeg")

# Serialized layout: one little-endian float32 per bin, no header
FEATURE_DTYPE = np.dtype("<f4")


@dataclass(frozen=True)
class ColorHistogram:
    """Joint RGB histogram with an independent bin count per channel."""
    r_bins: int
    g_bins: int
    b_bins: int

    @property
    def size(self) -> int:
        return self.r_bins * self.g_bins * self.b_bins

    def describe(self, pixels: np.ndarray) -> np.ndarray:
        """
        Build the normalized histogram of an RGB pixel buffer.

        Args:
            pixels: Array of shape (..., 3) with channel values in 0..65535

        Returns:
            float32 vector of length ``size`` summing to 1.0

        Raises:
            ValueError: If the buffer holds no pixels
        """
        flat = np.asarray(pixels, dtype=np.uint32).reshape(-1, 3)
        n_pix = flat.shape[0]
        if n_pix == 0:
            raise ValueError("cannot describe an image with no pixels")

        bins = np.array([self.r_bins, self.g_bins, self.b_bins], dtype=np.uint32)
        divisors = np.array(
            [math.ceil(CHANNEL_LIMIT / n) for n in (self.r_bins, self.g_bins, self.b_bins)],
            dtype=np.uint32,
        )
        # Bin counts that do not divide the range evenly would overflow the top bin
        cells = np.minimum(flat // divisors, bins - 1)
        index = cells[:, 0] + cells[:, 1] * self.r_bins + cells[:, 2] * (self.r_bins * self.g_bins)

        counts = np.bincount(index, minlength=self.size)
        return counts.astype(np.float32) / np.float32(n_pix)


def generate_feature(
    image: "DecodedImage",
    bins: Sequence[int] = DEFAULT_BINS,
    formats: Sequence[str] = SUPPORTED_FORMATS,
) -> Optional[np.ndarray]:
    """Return the histogram feature of a decoded image, or None for unsupported formats."""
    if image.format not in formats:
        logger.debug(f"No feature extraction for format {image.format!r}")
        return None
    histogram = ColorHistogram(*bins)
    return histogram.describe(image.pixels)


def feature_to_bytes(feature: Sequence[float]) -> bytes:
    return np.asarray(feature, dtype=FEATURE_DTYPE).tobytes()


def feature_from_bytes(data: bytes) -> np.ndarray:
    if len(data) % FEATURE_DTYPE.itemsize:
        raise ValueError(f"feature byte length {len(data)} is not a multiple of {FEATURE_DTYPE.itemsize}")
    return np.frombuffer(data, dtype=FEATURE_DTYPE).astype(np.float32)
