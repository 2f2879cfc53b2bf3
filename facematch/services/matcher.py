"""Linear-scan matcher over candidate face descriptors."""
from typing import Any, Iterable, List, Optional, Tuple

from facematch.core.config import settings
from facematch.core.exceptions import InvalidDescriptorError
from facematch.core.logging import get_logger
from facematch.domain.entities.descriptor import FaceDescriptor, validate_descriptor
from facematch.domain.entities.status import PersonStatus
from facematch.domain.value_objects.matching import ScoredCandidate
from facematch.services.distance import vector_distance

logger = get_logger(__name__)

Candidate = Tuple[Any, FaceDescriptor]


def find_matches(
    query: FaceDescriptor,
    candidates: Iterable[Candidate],
    max_distance: Optional[float] = None,
    limit: Optional[int] = None,
    status_filter: Optional[PersonStatus] = None,
) -> List[ScoredCandidate]:
    """Find the candidates whose descriptors are within max_distance of the query.

    Every candidate is scored (no index), so results are exact. Candidates are
    supplied by the caller; this function performs no I/O.

    Args:
        query: Descriptor to search for
        candidates: (record, descriptor) pairs. Records must expose `.status`
            when status_filter is used
        max_distance: Largest accepted distance, inclusive (defaults to
            settings.MATCH_THRESHOLD)
        limit: Maximum number of results to return
        status_filter: Only consider records with this status

    Returns:
        Matches sorted by ascending distance. Equal distances keep their
        input order. Empty when nothing is within the threshold.

    Raises:
        InvalidDescriptorError: If the query is not a valid descriptor
        ValueError: If max_distance is negative or limit is not positive
    """
    query_vector = validate_descriptor(query)

    max_distance = settings.MATCH_THRESHOLD if max_distance is None else max_distance
    if max_distance < 0:
        raise ValueError(f"max_distance must be non-negative, got {max_distance}")
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    if status_filter is not None:
        status_filter = PersonStatus(status_filter)

    scored: List[ScoredCandidate] = []
    scanned = 0
    for record, descriptor in candidates:
        if status_filter is not None and PersonStatus(record.status) != status_filter:
            continue

        try:
            candidate_vector = validate_descriptor(descriptor)
        except InvalidDescriptorError as e:
            # Stored record without a usable descriptor; never matchable
            logger.warning(
                "Skipping candidate with unusable descriptor",
                record_id=getattr(record, "id", None),
                error=str(e)
            )
            continue

        scanned += 1
        distance = vector_distance(query_vector, candidate_vector)
        if distance <= max_distance:
            scored.append(ScoredCandidate(record=record, distance=distance))

    # sorted() is stable: ties keep input order
    scored = sorted(scored, key=lambda match: match.distance)
    if limit is not None:
        scored = scored[:limit]

    logger.debug(
        "Scanned face candidates",
        scanned=scanned,
        matches_count=len(scored),
        max_distance=max_distance
    )
    return scored
