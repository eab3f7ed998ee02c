"""Histogram features, distance and bucket signatures for near-duplicate detection."""

from .histogram import (
    ColorHistogram,
    feature_from_bytes,
    feature_to_bytes,
    generate_feature,
)
from .distance import chi_distance, is_duplicate
from .signature import bucket_signature

__all__ = [
    "ColorHistogram",
    "generate_feature",
    "feature_to_bytes",
    "feature_from_bytes",
    "chi_distance",
    "is_duplicate",
    "bucket_signature",
]
