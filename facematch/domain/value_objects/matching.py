"""Face matching value objects."""
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from facematch.domain.entities.person import Devotee, LostPerson


class ScoredCandidate(BaseModel):
    """A candidate record paired with its distance to the query descriptor."""
    record: Any = Field(..., description="Candidate record as supplied to the matcher")
    distance: float = Field(..., ge=0.0, description="Euclidean distance to the query")

    model_config = ConfigDict(frozen=True)


class FaceMatch(BaseModel):
    """Lost-and-found match with its presentation similarity."""
    record: LostPerson = Field(..., description="Matched person")
    distance: float = Field(..., ge=0.0, description="Euclidean distance to the query")
    similarity: float = Field(..., ge=0.0, le=1.0, description="Presentation score (0.0 to 1.0)")


class MatchResult(BaseModel):
    """Result of a lost-and-found face match, closest first."""
    matches: List[FaceMatch] = Field(default_factory=list, description="Ranked matches")


class DevoteeMatch(BaseModel):
    """Devotee found by face search."""
    devotee: Devotee = Field(..., description="Matched devotee")
    distance: float = Field(..., ge=0.0, description="Euclidean distance to the query")
    similarity: float = Field(..., ge=0.0, le=1.0, description="Presentation score (0.0 to 1.0)")
