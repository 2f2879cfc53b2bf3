"""Core person domain entities."""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from facematch.domain.entities.descriptor import descriptor_to_list
from facematch.domain.entities.status import PersonStatus


class Gender(str, Enum):
    """Gender as recorded at registration or report time."""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    UNKNOWN = "Unknown"

    @classmethod
    def normalize(cls, value: Optional[Any]) -> "Gender":
        """Map free-form input such as "male" or "FEMALE" onto a Gender.

        Missing or unrecognised values become Gender.UNKNOWN.
        """
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, str):
            return cls.UNKNOWN
        candidate = value.strip().capitalize()
        for member in cls:
            if member.value == candidate:
                return member
        return cls.UNKNOWN


class ContactInfo(BaseModel):
    """Contact details of the family member or guardian."""
    name: Optional[str] = Field(None, description="Contact person name")
    phone: Optional[str] = Field(None, description="Contact phone number")
    relationship: Optional[str] = Field(None, description="Relationship to the person")


class LostPerson(BaseModel):
    """Lost-and-found subject with a face descriptor and lifecycle status.

    Instances are immutable; mutations go through the lifecycle manager and
    return a new instance.
    """
    id: str = Field(..., description="Unique identifier of the record")
    name: str = Field("Unknown", description="Name, if known")
    age: Optional[int] = Field(None, ge=0, description="Age in years")
    gender: Gender = Field(Gender.UNKNOWN, description="Gender")
    photo_url: str = Field(..., min_length=1, description="Reference to the stored photo")
    face_descriptor: List[float] = Field(..., description="128-value face embedding")
    status: PersonStatus = Field(PersonStatus.MISSING, description="Lifecycle status")
    contact_info: Optional[ContactInfo] = Field(None, description="Family contact")
    last_seen_location: str = Field("Not specified", description="Where the person was last seen")
    current_location: Optional[str] = Field(None, description="Where the person is now, once found")
    created_at: datetime = Field(..., description="Timestamp when the report was created")
    updated_at: datetime = Field(..., description="Timestamp of the last committed change")
    version: int = Field(1, ge=1, description="Incremented on every committed change")

    model_config = ConfigDict(frozen=True)

    @field_validator("face_descriptor", mode="before")
    @classmethod
    def validate_face_descriptor(cls, v: Any) -> List[float]:
        """Reject descriptors that are not exactly 128 finite numbers."""
        return descriptor_to_list(v)

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: Any) -> Gender:
        return Gender.normalize(v)


class Devotee(BaseModel):
    """Registered devotee. Carries registration metadata instead of a status."""
    id: str = Field(..., description="Unique identifier of the devotee")
    registration_number: str = Field(..., description="Human readable registration number")
    full_name: str = Field(..., min_length=1)
    age: int = Field(..., ge=1, le=150)
    gender: Gender = Field(...)
    phone: str = Field(..., min_length=1)
    emergency_contact_name: str = Field(..., min_length=1)
    emergency_contact_phone: str = Field(..., min_length=1)
    photo_url: Optional[str] = Field(None, description="Reference to the registration selfie")
    face_descriptor: Optional[List[float]] = Field(
        None, description="128-value face embedding, if one was captured"
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("face_descriptor", mode="before")
    @classmethod
    def validate_face_descriptor(cls, v: Any) -> Optional[List[float]]:
        if v is None:
            return None
        return descriptor_to_list(v)
