"""API models for lost-and-found endpoints."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from facematch.domain.entities.person import ContactInfo, Gender, LostPerson
from facematch.domain.entities.status import PersonStatus
from facematch.domain.value_objects.matching import MatchResult

# Lower bound for distance thresholds in requests
MIN_DISTANCE = 0.0


class PersonResponse(BaseModel):
    """API model for a lost-and-found record. The descriptor is not sent back."""
    id: str = Field(..., description="Unique identifier of the record")
    name: str = Field(..., description="Name, or Unknown")
    age: Optional[int] = Field(None, description="Age in years")
    gender: Gender = Field(..., description="Gender")
    photo_url: str = Field(..., description="Reference to the stored photo")
    status: PersonStatus = Field(..., description="Lifecycle status")
    contact_info: Optional[ContactInfo] = Field(None, description="Family contact")
    last_seen_location: str = Field(..., description="Where the person was last seen")
    current_location: Optional[str] = Field(None, description="Where the person is now")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_person(cls, person: LostPerson) -> "PersonResponse":
        """Create an API model from a domain LostPerson."""
        return cls(**person.model_dump(exclude={"face_descriptor", "version"}))


class SightingReportRequest(BaseModel):
    """Request model for the /report endpoint."""
    face_descriptor: List[Any] = Field(..., description="Array of 128 numbers")
    name: Optional[str] = Field(None, description="Name, if known")
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = Field(None, description="Male, Female, Other; anything else is Unknown")
    photo_url: str = Field(..., min_length=1, description="Reference to the stored photo")
    status: PersonStatus = Field(PersonStatus.MISSING, description="missing or found")
    contact_info: Optional[ContactInfo] = None
    last_seen_location: Optional[str] = None
    current_location: Optional[str] = None


class FaceMatchingRequest(BaseModel):
    """Request model for the /match endpoint."""
    face_descriptor: List[Any] = Field(..., description="Array of 128 numbers")
    status_filter: Optional[PersonStatus] = Field(
        None,
        description="Only match records with this status; reunited records are skipped when omitted"
    )
    max_distance: Optional[float] = Field(
        None,
        ge=MIN_DISTANCE,
        description="Maximum Euclidean distance (defaults to the configured threshold)"
    )


class FaceMatch(BaseModel):
    """API model representing a single match in the response."""
    person: PersonResponse = Field(..., description="Matched person")
    distance: float = Field(..., description="Euclidean distance to the query")
    similarity: float = Field(..., description="Similarity score (0.0 to 1.0)")


class FaceMatchingResponse(BaseModel):
    """Response model for the /match endpoint."""
    matches: List[FaceMatch] = Field(..., description="Matches, closest first")

    @classmethod
    def from_service_response(cls, result: MatchResult) -> "FaceMatchingResponse":
        """Convert the service layer MatchResult to the API response model."""
        return cls(
            matches=[
                FaceMatch(
                    person=PersonResponse.from_person(match.record),
                    distance=match.distance,
                    similarity=match.similarity
                )
                for match in result.matches
            ]
        )


class StatusTransitionRequest(BaseModel):
    """Request model for the /{id}/status endpoint."""
    status: PersonStatus = Field(..., description="Target status")
    current_location: Optional[str] = Field(None, description="Where the person is now")


class DetailsUpdateRequest(BaseModel):
    """Request model for updating location or contact details."""
    current_location: Optional[str] = None
    contact_info: Optional[ContactInfo] = None
