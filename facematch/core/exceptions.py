"""Custom exceptions for the face matching service."""
from typing import Optional


class FaceMatchError(Exception):
    """Base exception for face matching operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face matching error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class InvalidDescriptorError(FaceMatchError):
    """Raised when a face descriptor has the wrong length or non-numeric values."""
    pass


class InvalidTransitionError(FaceMatchError):
    """Raised when a status change is not an edge of the lifecycle state machine."""
    pass


class ConcurrentModificationError(FaceMatchError):
    """Raised when another transition on the same record is in flight or already committed."""
    pass


class RecordNotFoundError(FaceMatchError):
    """Raised when no record exists for the requested id."""
    pass


class StoreUnavailableError(FaceMatchError):
    """Raised when the descriptor store fails. Not retried internally."""
    pass


class ServiceNotInitializedError(FaceMatchError):
    """Raised when a service is requested before the container is initialized."""
    pass


class DuplicateRecordError(FaceMatchError):
    """Raised when a write violates a unique key such as the registration number."""
    pass
