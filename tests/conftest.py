"""Shared fixtures: an in-memory descriptor store and descriptor helpers."""
import asyncio
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from facematch.core.exceptions import (
    ConcurrentModificationError,
    DuplicateRecordError,
    InvalidDescriptorError,
    InvalidTransitionError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from facematch.domain.entities.person import ContactInfo, Devotee, LostPerson
from facematch.domain.entities.status import PersonStatus
from facematch.domain.interfaces.storage.descriptor_store import DescriptorStore, DevoteeStore
from facematch.services.face_matching import DevoteeSearchService, FaceMatchingService
from facematch.services.lifecycle import LifecycleManager

DESCRIPTOR_LENGTH = 128
UPSERT_METADATA_FIELDS = (
    "name", "age", "gender", "photo_url", "contact_info", "last_seen_location", "current_location",
)


def descriptor_at(distance: float, axis: int = 0) -> List[float]:
    """Descriptor at exactly `distance` from the zero descriptor."""
    values = [0.0] * DESCRIPTOR_LENGTH
    values[axis] = distance
    return values


ZERO = descriptor_at(0.0)


class InMemoryDescriptorStore(DescriptorStore, DevoteeStore):
    """Dict-backed store. Every call yields to the event loop once, like real I/O."""

    def __init__(self) -> None:
        self.records: Dict[str, LostPerson] = {}
        self.devotees: List[Devotee] = []
        self.available = True
        self.committed_updates = 0

    async def _io(self) -> None:
        await asyncio.sleep(0)
        if not self.available:
            raise StoreUnavailableError("store is down")

    async def list_descriptors(
        self,
        status_filter: Optional[PersonStatus] = None,
        exclude_status: Optional[PersonStatus] = None,
    ) -> List[Tuple[LostPerson, List[float]]]:
        await self._io()
        return [
            (record, record.face_descriptor)
            for record in self.records.values()
            if (status_filter is None or record.status == status_filter)
            and (exclude_status is None or record.status != exclude_status)
        ]

    async def get_record(self, record_id: str) -> LostPerson:
        await self._io()
        if record_id not in self.records:
            raise RecordNotFoundError(f"Person not found: {record_id}", details={"id": record_id})
        return self.records[record_id]

    async def upsert_record(self, record: LostPerson) -> LostPerson:
        await self._io()
        existing = self.records.get(record.id)
        if existing is None:
            self.records[record.id] = record
            return record
        if record.status != existing.status:
            raise InvalidTransitionError(
                f"Cannot move person {record.id} by upsert",
                details={"id": record.id, "from": existing.status.value, "to": record.status.value}
            )
        if record.face_descriptor != existing.face_descriptor:
            raise InvalidDescriptorError(f"Face descriptor of person {record.id} cannot be replaced")
        changes = {name: getattr(record, name) for name in UPSERT_METADATA_FIELDS}
        return self._apply(record.id, existing.version, changes)

    def _apply(self, record_id: str, expected_version: Optional[int], changes: dict) -> LostPerson:
        if record_id not in self.records:
            raise RecordNotFoundError(f"Person not found: {record_id}", details={"id": record_id})
        current = self.records[record_id]
        if expected_version is not None and current.version != expected_version:
            raise ConcurrentModificationError(f"Person {record_id} was modified concurrently")
        changes.update(version=current.version + 1, updated_at=datetime.now(timezone.utc))
        updated = current.model_copy(update=changes)
        self.records[record_id] = updated
        self.committed_updates += 1
        return updated

    async def update_status(
        self,
        record_id: str,
        new_status: PersonStatus,
        location_update: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> LostPerson:
        await self._io()
        changes = {"status": PersonStatus(new_status)}
        if location_update is not None:
            changes["current_location"] = location_update
        return self._apply(record_id, expected_version, changes)

    async def update_details(
        self,
        record_id: str,
        current_location: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
        expected_version: Optional[int] = None,
    ) -> LostPerson:
        await self._io()
        changes = {}
        if current_location is not None:
            changes["current_location"] = current_location
        if contact_info is not None:
            changes["contact_info"] = contact_info
        return self._apply(record_id, expected_version, changes)

    async def list_records(
        self,
        status: Optional[PersonStatus] = None,
        limit: Optional[int] = None,
    ) -> List[LostPerson]:
        await self._io()
        records = [r for r in reversed(list(self.records.values())) if status is None or r.status == status]
        return records[:limit] if limit is not None else records

    async def add_devotee(self, devotee: Devotee) -> Devotee:
        await self._io()
        if any(d.registration_number == devotee.registration_number for d in self.devotees):
            raise DuplicateRecordError(
                f"Registration number {devotee.registration_number} already exists",
                details={"registration_number": devotee.registration_number}
            )
        self.devotees.append(devotee)
        return devotee

    async def list_devotee_descriptors(self) -> List[Tuple[Devotee, List[float]]]:
        await self._io()
        return [(d, d.face_descriptor) for d in reversed(self.devotees) if d.face_descriptor is not None]


def make_person(
    descriptor: Optional[List[float]] = None,
    status: PersonStatus = PersonStatus.MISSING,
    name: str = "Unknown",
) -> LostPerson:
    now = datetime.now(timezone.utc)
    return LostPerson(
        id=str(uuid.uuid4()),
        name=name,
        photo_url="photos/test.jpg",
        face_descriptor=descriptor if descriptor is not None else ZERO,
        status=status,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def store() -> InMemoryDescriptorStore:
    return InMemoryDescriptorStore()


@pytest.fixture
def lifecycle(store) -> LifecycleManager:
    return LifecycleManager(store, policy="fail")


@pytest.fixture
def face_matching_service(store, lifecycle) -> FaceMatchingService:
    return FaceMatchingService(store, lifecycle)


@pytest.fixture
def devotee_search_service(store) -> DevoteeSearchService:
    return DevoteeSearchService(store)
