"""Distance metrics for histogram feature comparison."""

import math
from typing import Sequence

import numpy as np

EPSILON = 1e-10


def chi_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Calculate the symmetric chi-squared distance between two histograms.

    Args:
        a: First feature vector
        b: Second feature vector

    Returns:
        0.5 * sum((a - b)^2 / (a + b + eps)); 0 for identical vectors,
        at most 1.0 for normalized vectors, inf if the lengths differ
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return math.inf

    diff = a - b
    return float(np.sum(diff * diff / (a + b + EPSILON)) / 2)


def is_duplicate(a: Sequence[float], b: Sequence[float], threshold: float) -> bool:
    """Check whether two feature vectors are close enough to be the same image."""
    return chi_distance(a, b) < threshold
