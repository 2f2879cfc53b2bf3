"""Lost-and-found status state machine."""
from enum import Enum
from typing import Dict, FrozenSet

from facematch.core.exceptions import InvalidTransitionError


class PersonStatus(str, Enum):
    """Status of a lost-and-found subject."""
    MISSING = "missing"
    FOUND = "found"
    REUNITED = "reunited"


# missing is the initial state, reunited is terminal
ALLOWED_TRANSITIONS: Dict[PersonStatus, FrozenSet[PersonStatus]] = {
    PersonStatus.MISSING: frozenset({PersonStatus.FOUND, PersonStatus.REUNITED}),
    PersonStatus.FOUND: frozenset({PersonStatus.REUNITED}),
    PersonStatus.REUNITED: frozenset(),
}

INITIAL_STATUSES: FrozenSet[PersonStatus] = frozenset({PersonStatus.MISSING, PersonStatus.FOUND})


def can_transition(current: PersonStatus, target: PersonStatus) -> bool:
    """Check whether `current -> target` is an edge of the state machine."""
    return target in ALLOWED_TRANSITIONS[PersonStatus(current)]


def ensure_transition(record_id: str, current: PersonStatus, target: PersonStatus) -> None:
    """Raise InvalidTransitionError unless `current -> target` is allowed.

    Args:
        record_id: Id of the record being transitioned (for error context)
        current: Status currently stored for the record
        target: Requested status

    Raises:
        InvalidTransitionError: If the edge is not defined
    """
    current = PersonStatus(current)
    target = PersonStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move person {record_id} from '{current.value}' to '{target.value}'",
            details={"id": record_id, "from": current.value, "to": target.value}
        )
