"""Distance engine for comparing face descriptors.

Pure functions only: no state, no I/O. Safe to call concurrently.
"""
from typing import Optional

import numpy as np

from facematch.core.config import settings
from facematch.domain.entities.descriptor import FaceDescriptor, validate_descriptor


def vector_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two already validated vectors."""
    diff = a - b
    return float(np.sqrt(np.sum(diff * diff)))


def euclidean_distance(a: FaceDescriptor, b: FaceDescriptor) -> float:
    """Compute the Euclidean distance between two face descriptors.

    Lower distance means more similar faces.

    Args:
        a: First descriptor (128 numbers)
        b: Second descriptor (128 numbers)

    Returns:
        sqrt(sum((a[i] - b[i])^2))

    Raises:
        InvalidDescriptorError: If either descriptor is not 128 finite numbers
    """
    return vector_distance(validate_descriptor(a), validate_descriptor(b))


def similarity(distance: float, bound: Optional[float] = None) -> float:
    """Map a distance to a user-facing score in [0, 1].

    Presentation only; ranking and thresholding always use the raw distance.

    Args:
        distance: Euclidean distance between two descriptors
        bound: Distance that maps to 0.0 (defaults to settings.SIMILARITY_BOUND)

    Returns:
        max(0, 1 - distance / bound)
    """
    bound = settings.SIMILARITY_BOUND if bound is None else bound
    if bound <= 0:
        raise ValueError(f"Similarity bound must be positive, got {bound}")
    return max(0.0, 1.0 - distance / bound)
