"""
Domain records kept by the record store.

Buckets group images whose histograms share a coarse signature; image
records carry the exact serialized feature vector used for duplicate
checks; sources attach origin links to a record.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .dedup.histogram import feature_from_bytes


@dataclass(frozen=True)
class Bucket:
    """A similarity group keyed by its signature."""
    id: int
    signature: str


@dataclass(frozen=True)
class ImageRecord:
    """Metadata for one accepted image."""
    name: str                       # Unique display name (may carry a random suffix)
    format: str                     # Decoder format tag, e.g. "png" or "jpeg"
    feature: bytes                  # Little-endian float32 histogram
    bucket_id: Optional[int] = None
    id: Optional[int] = None

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.format}"

    def features(self) -> np.ndarray:
        """Decode the stored feature vector."""
        return feature_from_bytes(self.feature)


@dataclass(frozen=True)
class Source:
    """A link an image was obtained from."""
    link: str
    image_name: str
    id: Optional[int] = None
