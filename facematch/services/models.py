"""Service-specific models.

This module contains models used by services that are independent of the API layer.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from facematch.domain.entities.person import ContactInfo, Gender
from facematch.domain.entities.status import PersonStatus


class SightingReport(BaseModel):
    """Metadata of a lost-and-found report, everything except the descriptor."""
    name: Optional[str] = Field(None, description="Name, if known")
    age: Optional[int] = Field(None, ge=0, description="Age in years")
    gender: Gender = Field(Gender.UNKNOWN, description="Gender, free-form input is normalized")
    photo_url: str = Field(..., min_length=1, description="Reference to the stored photo")
    status: PersonStatus = Field(PersonStatus.MISSING, description="Initial status, missing or found")
    contact_info: Optional[ContactInfo] = Field(None, description="Family contact")
    last_seen_location: Optional[str] = Field(None, description="Where the person was last seen")
    current_location: Optional[str] = Field(None, description="Where the person is now, for found reports")

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v) -> Gender:
        return Gender.normalize(v)


class DevoteeRegistration(BaseModel):
    """Registration data of a devotee, everything except the descriptor."""
    full_name: str = Field(..., min_length=1)
    age: int = Field(..., ge=1, le=150)
    gender: Gender = Field(..., description="Male, Female or Other")
    phone: str = Field(..., min_length=1)
    emergency_contact_name: str = Field(..., min_length=1)
    emergency_contact_phone: str = Field(..., min_length=1)
    photo_url: Optional[str] = Field(None)

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v) -> Gender:
        gender = Gender.normalize(v)
        if gender == Gender.UNKNOWN:
            raise ValueError("gender must be one of Male, Female, Other")
        return gender
