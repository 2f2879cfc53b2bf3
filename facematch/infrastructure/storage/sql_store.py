"""SQLAlchemy implementation of the descriptor and devotee stores."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facematch.core.exceptions import (
    ConcurrentModificationError,
    DuplicateRecordError,
    InvalidDescriptorError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from facematch.core.logging import get_logger
from facematch.domain.entities.person import ContactInfo, Devotee, LostPerson
from facematch.domain.entities.status import PersonStatus
from facematch.domain.interfaces.storage.descriptor_store import DescriptorStore, DevoteeStore
from facematch.infrastructure.database.models import DevoteeRecord, LostPersonRecord
from facematch.infrastructure.database.session import get_db_session
from facematch.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)

T = TypeVar("T")


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_person(record: LostPersonRecord) -> LostPerson:
    """Convert a database record to a domain entity."""
    return LostPerson(
        id=record.id,
        name=record.name,
        age=record.age,
        gender=record.gender,
        photo_url=record.photo_url,
        face_descriptor=record.face_descriptor,
        status=record.status,
        contact_info=ContactInfo(**record.contact_info) if record.contact_info else None,
        last_seen_location=record.last_seen_location,
        current_location=record.current_location,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        version=record.version,
    )


def to_devotee(record: DevoteeRecord) -> Devotee:
    """Convert a database record to a domain entity."""
    return Devotee(
        id=record.id,
        registration_number=record.registration_number,
        full_name=record.full_name,
        age=record.age,
        gender=record.gender,
        phone=record.phone,
        emergency_contact_name=record.emergency_contact_name,
        emergency_contact_phone=record.emergency_contact_phone,
        photo_url=record.photo_url,
        face_descriptor=record.face_descriptor,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
    )


def _usable(records: list, convert: Callable[..., T]) -> List[T]:
    """Convert records, skipping those whose stored descriptor is unusable."""
    converted = []
    for record in records:
        try:
            converted.append(convert(record))
        except InvalidDescriptorError as e:
            logger.warning("Skipping record with unusable descriptor", record_id=record.id, error=str(e))
    return converted


class SqlDescriptorStore(DescriptorStore, DevoteeStore):
    """Descriptor store backed by a SQL database.

    Every call runs in its own unit of work. Unique key violations surface as
    DuplicateRecordError; other database failures surface as
    StoreUnavailableError and are not retried.

    Example:
        ```python
        engine = create_engine()
        store = SqlDescriptorStore(create_session_factory(engine))
        candidates = await store.list_descriptors(status_filter=PersonStatus.MISSING)
        ```
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory for database sessions
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncGenerator[UnitOfWork, None]:
        try:
            async with get_db_session(self._session_factory) as session:
                async with UnitOfWork(session) as uow:
                    yield uow
        except IntegrityError as e:
            logger.warning("Unique key violated", operation=operation, error=str(e.orig))
            raise DuplicateRecordError(
                f"Duplicate record during {operation}",
                details={"operation": operation}
            ) from e
        except SQLAlchemyError as e:
            logger.error("Descriptor store operation failed", operation=operation, error=str(e))
            raise StoreUnavailableError(
                f"Descriptor store unavailable during {operation}",
                details={"operation": operation, "error": str(e)}
            ) from e

    async def list_descriptors(
        self,
        status_filter: Optional[PersonStatus] = None,
        exclude_status: Optional[PersonStatus] = None,
    ) -> List[Tuple[LostPerson, List[float]]]:
        async with self._unit_of_work("list_descriptors") as uow:
            records = await uow.lost_persons.list_with_descriptors(
                status=status_filter.value if status_filter is not None else None,
                exclude_status=exclude_status.value if exclude_status is not None else None,
            )
            people = _usable(records, to_person)
        return [(person, person.face_descriptor) for person in people]

    async def get_record(self, record_id: str) -> LostPerson:
        async with self._unit_of_work("get_record") as uow:
            record = await uow.lost_persons.get(record_id)
            return to_person(record)

    async def upsert_record(self, record: LostPerson) -> LostPerson:
        values = record.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
        values["created_at"] = record.created_at
        values["updated_at"] = record.updated_at
        async with self._unit_of_work("upsert_record") as uow:
            stored = await uow.lost_persons.upsert(record.id, values)
            return to_person(stored)

    async def update_status(
        self,
        record_id: str,
        new_status: PersonStatus,
        location_update: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> LostPerson:
        values = {
            "status": PersonStatus(new_status).value,
            "updated_at": datetime.now(timezone.utc),
        }
        if location_update is not None:
            values["current_location"] = location_update
        return await self._compare_and_update("update_status", record_id, values, expected_version)

    async def update_details(
        self,
        record_id: str,
        current_location: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
        expected_version: Optional[int] = None,
    ) -> LostPerson:
        values = {"updated_at": datetime.now(timezone.utc)}
        if current_location is not None:
            values["current_location"] = current_location
        if contact_info is not None:
            values["contact_info"] = contact_info.model_dump()
        return await self._compare_and_update("update_details", record_id, values, expected_version)

    async def _compare_and_update(
        self,
        operation: str,
        record_id: str,
        values: dict,
        expected_version: Optional[int],
    ) -> LostPerson:
        async with self._unit_of_work(operation) as uow:
            updated = await uow.lost_persons.compare_and_update(record_id, values, expected_version)
            if not updated:
                current = await uow.lost_persons.find(record_id)
                if current is None:
                    raise RecordNotFoundError(
                        f"Person not found: {record_id}",
                        details={"id": record_id}
                    )
                raise ConcurrentModificationError(
                    f"Person {record_id} was modified concurrently",
                    details={
                        "id": record_id,
                        "expected_version": expected_version,
                        "actual_version": current.version,
                    }
                )
            record = await uow.lost_persons.get(record_id)
            return to_person(record)

    async def list_records(
        self,
        status: Optional[PersonStatus] = None,
        limit: Optional[int] = None,
    ) -> List[LostPerson]:
        async with self._unit_of_work("list_records") as uow:
            records = await uow.lost_persons.list_recent(
                status=status.value if status is not None else None,
                limit=limit,
            )
            return [to_person(record) for record in records]

    async def add_devotee(self, devotee: Devotee) -> Devotee:
        values = devotee.model_dump(mode="json", exclude={"created_at", "updated_at"})
        values["created_at"] = devotee.created_at
        values["updated_at"] = devotee.updated_at
        async with self._unit_of_work("add_devotee") as uow:
            record = await uow.devotees.create(values)
            return to_devotee(record)

    async def list_devotee_descriptors(self) -> List[Tuple[Devotee, List[float]]]:
        async with self._unit_of_work("list_devotee_descriptors") as uow:
            records = await uow.devotees.list_with_descriptors()
            devotees = _usable(records, to_devotee)
        return [(devotee, devotee.face_descriptor) for devotee in devotees]
