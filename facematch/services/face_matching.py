"""Face matching services for lost-and-found and devotee search."""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from facematch.core.config import settings
from facematch.core.exceptions import DuplicateRecordError, InvalidTransitionError
from facematch.core.logging import get_logger
from facematch.core.utils.registration import generate_registration_number
from facematch.domain.entities.descriptor import FaceDescriptor, descriptor_to_list
from facematch.domain.entities.person import ContactInfo, Devotee, LostPerson
from facematch.domain.entities.status import INITIAL_STATUSES, PersonStatus
from facematch.domain.interfaces.storage.descriptor_store import DescriptorStore, DevoteeStore
from facematch.domain.value_objects.matching import DevoteeMatch, FaceMatch, MatchResult
from facematch.services.distance import similarity
from facematch.services.lifecycle import LifecycleManager
from facematch.services.matcher import find_matches
from facematch.services.models import DevoteeRegistration, SightingReport

logger = get_logger(__name__)

REGISTRATION_ATTEMPTS = 5


class FaceMatchingService:
    """Lost-and-found operations: report, match, list and status changes.

    This service:
    1. Validates descriptors before touching the store
    2. Pulls candidates from the descriptor store in a single call
    3. Ranks them with the linear-scan matcher
    4. Routes every status change through the lifecycle manager

    Example:
        ```python
        service = FaceMatchingService(store, LifecycleManager(store))

        person = await service.report_sighting(descriptor, SightingReport(photo_url="..."))
        result = await service.match_face(query, status_filter=PersonStatus.MISSING)
        await service.transition_status(person.id, PersonStatus.FOUND, "Gate 3")
        ```
    """

    def __init__(self, store: DescriptorStore, lifecycle: LifecycleManager) -> None:
        """Initialize the face matching service.

        Args:
            store: Store holding lost-and-found records
            lifecycle: Manager enforcing status transitions
        """
        self.store = store
        self.lifecycle = lifecycle

    async def report_sighting(self, descriptor: FaceDescriptor, metadata: SightingReport) -> LostPerson:
        """Persist a new lost-and-found record.

        Args:
            descriptor: Face descriptor of the reported person
            metadata: Report details

        Returns:
            The stored record

        Raises:
            InvalidDescriptorError: If the descriptor is not 128 finite numbers
            InvalidTransitionError: If the initial status is not missing or found
            StoreUnavailableError: If the store fails
        """
        face_descriptor = descriptor_to_list(descriptor)
        if metadata.status not in INITIAL_STATUSES:
            raise InvalidTransitionError(
                f"New reports cannot start as '{metadata.status.value}'",
                details={"id": None, "from": None, "to": metadata.status.value}
            )

        now = datetime.now(timezone.utc)
        person = LostPerson(
            id=str(uuid.uuid4()),
            name=metadata.name or "Unknown",
            age=metadata.age,
            gender=metadata.gender,
            photo_url=metadata.photo_url,
            face_descriptor=face_descriptor,
            status=metadata.status,
            contact_info=metadata.contact_info,
            last_seen_location=metadata.last_seen_location or "Not specified",
            current_location=metadata.current_location,
            created_at=now,
            updated_at=now,
        )
        stored = await self.store.upsert_record(person)
        logger.info("Reported person", person_id=stored.id, status=stored.status.value)
        return stored

    async def match_face(
        self,
        descriptor: FaceDescriptor,
        status_filter: Optional[PersonStatus] = None,
        max_distance: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> MatchResult:
        """Find reported persons whose face matches the descriptor.

        Reporting a found person typically searches status_filter=missing, and
        a family looking for someone searches status_filter=found. Without a
        filter, reunited records are left out.

        Args:
            descriptor: Query face descriptor
            status_filter: Only match records with this status
            max_distance: Threshold override (defaults to settings.MATCH_THRESHOLD)
            limit: Result cap (defaults to settings.LOST_FOUND_MATCH_LIMIT)

        Returns:
            MatchResult with matches closest first

        Raises:
            InvalidDescriptorError: If the query descriptor is invalid
            StoreUnavailableError: If the store fails
        """
        query = descriptor_to_list(descriptor)
        max_distance = settings.MATCH_THRESHOLD if max_distance is None else max_distance
        limit = settings.LOST_FOUND_MATCH_LIMIT if limit is None else limit

        if status_filter is not None:
            status_filter = PersonStatus(status_filter)
            candidates = await self.store.list_descriptors(status_filter=status_filter)
        else:
            candidates = await self.store.list_descriptors(exclude_status=PersonStatus.REUNITED)

        scored = find_matches(
            query,
            candidates,
            max_distance=max_distance,
            limit=limit,
            status_filter=status_filter,
        )
        matches = [
            FaceMatch(
                record=match.record,
                distance=match.distance,
                similarity=similarity(match.distance),
            )
            for match in scored
        ]
        logger.info(
            "Matched face against reported persons",
            candidates_count=len(candidates),
            matches_count=len(matches),
            status_filter=status_filter.value if status_filter else None,
            max_distance=max_distance
        )
        return MatchResult(matches=matches)

    async def list_by_status(
        self,
        status: Optional[PersonStatus] = None,
        limit: Optional[int] = None,
    ) -> List[LostPerson]:
        """List recent reports, newest first."""
        limit = settings.LIST_LIMIT if limit is None else limit
        return await self.store.list_records(
            status=PersonStatus(status) if status is not None else None,
            limit=limit
        )

    async def get_person(self, record_id: str) -> LostPerson:
        """Get a single report by id."""
        return await self.store.get_record(record_id)

    async def transition_status(
        self,
        record_id: str,
        target: PersonStatus,
        location_update: Optional[str] = None,
    ) -> LostPerson:
        """Move a report to a new status through the lifecycle manager."""
        return await self.lifecycle.transition(record_id, target, location_update=location_update)

    async def update_details(
        self,
        record_id: str,
        current_location: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
    ) -> LostPerson:
        """Update location or contact details of a report."""
        return await self.lifecycle.update_details(
            record_id,
            current_location=current_location,
            contact_info=contact_info
        )


class DevoteeSearchService:
    """Registration desk operations: register a devotee and search devotees by face."""

    def __init__(self, store: DevoteeStore) -> None:
        self.store = store

    async def register(
        self,
        registration: DevoteeRegistration,
        descriptor: Optional[FaceDescriptor] = None,
    ) -> Devotee:
        """Register a devotee, optionally with a face descriptor.

        A registration number that is already taken is replaced by a fresh one,
        up to REGISTRATION_ATTEMPTS tries.

        Raises:
            InvalidDescriptorError: If a descriptor is given and is invalid
            DuplicateRecordError: If every generated registration number was taken
            StoreUnavailableError: If the store fails
        """
        face_descriptor = descriptor_to_list(descriptor) if descriptor is not None else None
        for attempt in range(1, REGISTRATION_ATTEMPTS + 1):
            now = datetime.now(timezone.utc)
            devotee = Devotee(
                id=str(uuid.uuid4()),
                registration_number=generate_registration_number(now),
                face_descriptor=face_descriptor,
                created_at=now,
                updated_at=now,
                **registration.model_dump(),
            )
            try:
                stored = await self.store.add_devotee(devotee)
                break
            except DuplicateRecordError:
                if attempt == REGISTRATION_ATTEMPTS:
                    raise
                logger.warning(
                    "Registration number collision, retrying",
                    registration_number=devotee.registration_number,
                    attempt=attempt
                )
        logger.info(
            "Registered devotee",
            devotee_id=stored.id,
            registration_number=stored.registration_number,
            has_face=stored.face_descriptor is not None
        )
        return stored

    async def search_by_face(
        self,
        descriptor: FaceDescriptor,
        max_distance: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[DevoteeMatch]:
        """Find devotees whose registered face matches the descriptor.

        Candidates come newest first, so equal distances favour the latest
        registration.

        Raises:
            InvalidDescriptorError: If the query descriptor is invalid
            StoreUnavailableError: If the store fails
        """
        query = descriptor_to_list(descriptor)
        max_distance = settings.MATCH_THRESHOLD if max_distance is None else max_distance
        limit = settings.DEVOTEE_MATCH_LIMIT if limit is None else limit

        candidates = await self.store.list_devotee_descriptors()
        scored = find_matches(query, candidates, max_distance=max_distance, limit=limit)
        logger.info(
            "Searched devotees by face",
            candidates_count=len(candidates),
            matches_count=len(scored),
            max_distance=max_distance
        )
        return [
            DevoteeMatch(
                devotee=match.record,
                distance=match.distance,
                similarity=similarity(match.distance),
            )
            for match in scored
        ]
