"""API models for devotee endpoints."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from facematch.domain.entities.person import Devotee, Gender
from facematch.domain.value_objects.matching import DevoteeMatch
from facematch.services.models import DevoteeRegistration


class DevoteeRegistrationRequest(DevoteeRegistration):
    """Request model for registering a devotee."""
    face_descriptor: Optional[List[Any]] = Field(None, description="Array of 128 numbers, if captured")


class DevoteeResponse(BaseModel):
    """API model for a devotee. The descriptor is not sent back."""
    id: str
    registration_number: str
    full_name: str
    age: int
    gender: Gender
    phone: str
    emergency_contact_name: str
    emergency_contact_phone: str
    photo_url: Optional[str] = None
    has_face_descriptor: bool = Field(..., description="Whether the devotee can be found by face")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_devotee(cls, devotee: Devotee) -> "DevoteeResponse":
        """Create an API model from a domain Devotee."""
        return cls(
            **devotee.model_dump(exclude={"face_descriptor"}),
            has_face_descriptor=devotee.face_descriptor is not None
        )


class DevoteeSearchRequest(BaseModel):
    """Request model for the /search-by-face endpoint."""
    face_descriptor: List[Any] = Field(..., description="Array of 128 numbers")
    max_distance: Optional[float] = Field(
        None,
        ge=0.0,
        validation_alias=AliasChoices("max_distance", "maxDistance"),
        description="Maximum Euclidean distance (defaults to the configured threshold)"
    )


class DevoteeMatchResponse(DevoteeResponse):
    """Devotee found by face, with its distance to the query."""
    match_distance: float = Field(..., description="Euclidean distance to the query")
    similarity: float = Field(..., description="Similarity score (0.0 to 1.0)")

    @classmethod
    def from_match(cls, match: DevoteeMatch) -> "DevoteeMatchResponse":
        return cls(
            **match.devotee.model_dump(exclude={"face_descriptor"}),
            has_face_descriptor=True,
            match_distance=match.distance,
            similarity=match.similarity
        )
