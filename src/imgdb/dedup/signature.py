"""Coarse bucket signatures used to prune duplicate candidates."""

from typing import Sequence

import numpy as np

BITS_PER_CHAR = 6
ALPHABET = (
    "0123456789"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "-_"
)

_BIT_WEIGHTS = 1 << np.arange(BITS_PER_CHAR)


def bucket_signature(feature: Sequence[float]) -> str:
    """
    Approximate a feature vector as a short printable key.

    Each bin becomes one bit, set when the bin holds at least average mass
    (1 / len). Bits are packed six per character, least significant first,
    and a trailing partial group still yields a character. Similar
    histograms usually share a key; the chi distance decides duplicates.

    Args:
        feature: Normalized histogram

    Returns:
        Signature string of ceil(len / 6) characters
    """
    values = np.asarray(feature, dtype=np.float32)
    n = values.size
    if n == 0:
        return ""

    thresh = np.float32(1) / np.float32(n)
    bits = (values >= thresh).astype(np.int64)

    pad = (-n) % BITS_PER_CHAR
    if pad:
        bits = np.concatenate([bits, np.zeros(pad, dtype=np.int64)])

    groups = bits.reshape(-1, BITS_PER_CHAR) @ _BIT_WEIGHTS
    return "".join(ALPHABET[g] for g in groups)
