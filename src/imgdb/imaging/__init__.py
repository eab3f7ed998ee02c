"""Image decoding collaborator."""

from .decoder import CHANNEL_MAX, DecodedImage, decode_image

__all__ = ["CHANNEL_MAX", "DecodedImage", "decode_image"]
