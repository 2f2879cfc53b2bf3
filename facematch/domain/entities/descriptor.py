"""Face descriptor validation."""
import numbers
from typing import Any, List, Optional, Sequence

import numpy as np

from facematch.core.config import settings
from facematch.core.exceptions import InvalidDescriptorError

FaceDescriptor = Sequence[float]


def validate_descriptor(values: Any, length: Optional[int] = None) -> np.ndarray:
    """Validate a face descriptor and convert it to a float64 vector.

    Args:
        values: Sequence of numbers produced by the embedding model
        length: Expected number of components (defaults to settings.DESCRIPTOR_LENGTH)

    Returns:
        np.ndarray of shape (length,)

    Raises:
        InvalidDescriptorError: If the input is not a sequence of `length` finite numbers
    """
    expected = length or settings.DESCRIPTOR_LENGTH

    if isinstance(values, np.ndarray):
        if values.ndim != 1 or not np.issubdtype(values.dtype, np.number) or values.dtype == np.bool_:
            raise InvalidDescriptorError(
                "Face descriptor must be a flat numeric vector",
                details={"dtype": str(values.dtype), "shape": list(values.shape)}
            )
        items = values
    elif isinstance(values, (list, tuple)):
        for index, value in enumerate(values):
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidDescriptorError(
                    "Face descriptor values must be numbers",
                    details={"index": index, "value": repr(value)}
                )
            try:
                float(value)
            except OverflowError:
                raise InvalidDescriptorError(
                    "Face descriptor values must fit in a 64-bit float",
                    details={"index": index}
                )
        items = values
    else:
        raise InvalidDescriptorError(
            "Face descriptor must be a sequence of numbers",
            details={"type": type(values).__name__}
        )

    if len(items) != expected:
        raise InvalidDescriptorError(
            f"Valid face descriptor required ({expected} values)",
            details={"expected": expected, "actual": len(items)}
        )

    try:
        vector = np.asarray(items, dtype=np.float64)
    except (OverflowError, TypeError, ValueError) as e:
        raise InvalidDescriptorError(
            "Face descriptor values must be 64-bit floats",
            details={"error": str(e)}
        ) from e
    if not np.all(np.isfinite(vector)):
        raise InvalidDescriptorError("Face descriptor values must be finite")
    return vector


def descriptor_to_list(values: Any, length: Optional[int] = None) -> List[float]:
    """Validate a descriptor and return it as a plain list of floats for storage."""
    return validate_descriptor(values, length).tolist()
