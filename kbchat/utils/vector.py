"""Vector helpers for brute-force similarity search.

All functions are pure. Vectors arrive as plain lists of floats (that is how
they are stored in the corpus) and are converted to numpy arrays here.
"""
from typing import Optional, Sequence

import numpy as np


class DimensionMismatchError(ValueError):
    """Raised when two embeddings from different spaces are compared."""


def _as_array(vec: Sequence[float]) -> np.ndarray:
    return np.asarray(vec, dtype=np.float64)


def dot_product(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    a, b = _as_array(vec_a), _as_array(vec_b)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Cannot compare vectors of length {a.size} and {b.size}")
    return float(np.dot(a, b))


def magnitude(vec: Sequence[float]) -> float:
    return float(np.linalg.norm(_as_array(vec)))


def cosine_similarity(vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector is missing, empty or all zeros.
    Raises DimensionMismatchError for vectors of different lengths.
    """
    if vec_a is None or vec_b is None or len(vec_a) == 0 or len(vec_b) == 0:
        return 0.0
    dot = dot_product(vec_a, vec_b)
    mag_a = magnitude(vec_a)
    mag_b = magnitude(vec_b)
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return dot / (mag_a * mag_b)
