from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Tuple

import numpy as np
from PIL import Image

from ..errors import DecodeError
from ..logging import get_logger

logger = get_logger(__name__)

# 8-bit channels are widened to the 16-bit range the histogram quantizes over
CHANNEL_MAX = 65535
_WIDEN = 257

# Integer modes Pillow uses for 16-bit grayscale; converting them to RGB clips at 255
_WIDE_GRAY_MODES = ("I;16", "I;16L", "I;16B", "I;16N", "I")


@dataclass(frozen=True)
class DecodedImage:
    format: str
    pixels: np.ndarray  # (height, width, 3) uint16

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def color_at(self, x: int, y: int) -> Tuple[int, int, int]:
        """Return the (r, g, b) value at column x, row y in 0..65535."""
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)


def decode_image(data: bytes) -> DecodedImage:
    """
    Decode raw image bytes into a 16-bit RGB pixel buffer.

    16-bit grayscale images keep their full precision. Images with an alpha
    channel are premultiplied, so fully transparent pixels read as black.

    Args:
        data: Encoded image bytes (any format Pillow can read)

    Returns:
        DecodedImage with the lowercase Pillow format name

    Raises:
        DecodeError: If the bytes cannot be decoded
    """
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            fmt = (img.format or "").lower()
            pixels = _to_rgb16(img)
    except Exception as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc

    logger.debug(f"Decoded {fmt} image of {pixels.shape[1]}x{pixels.shape[0]}")
    return DecodedImage(format=fmt, pixels=pixels)


def _to_rgb16(img: Image.Image) -> np.ndarray:
    if img.mode in _WIDE_GRAY_MODES:
        gray = np.clip(np.asarray(img).astype(np.int64), 0, CHANNEL_MAX).astype(np.uint16)
        return np.repeat(gray[:, :, np.newaxis], 3, axis=2)

    if "A" in img.mode or "transparency" in img.info:
        rgba = np.asarray(img.convert('RGBA'), dtype=np.uint64) * np.uint64(_WIDEN)
        alpha = rgba[:, :, 3:]
        return (rgba[:, :, :3] * alpha // np.uint64(CHANNEL_MAX)).astype(np.uint16)

    if img.mode != 'RGB':
        img = img.convert('RGB')
    return np.asarray(img, dtype=np.uint16) * np.uint16(_WIDEN)
