"""Value objects package."""
from .matching import DevoteeMatch, FaceMatch, MatchResult, ScoredCandidate

__all__ = ["DevoteeMatch", "FaceMatch", "MatchResult", "ScoredCandidate"]
