"""Database repositories for the face matching service."""
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from facematch.core.exceptions import (
    ConcurrentModificationError,
    InvalidDescriptorError,
    InvalidTransitionError,
    RecordNotFoundError,
)
from facematch.infrastructure.database.models import DevoteeRecord, LostPersonRecord, utcnow

# Columns an upsert never rewrites on an existing record
UPSERT_IMMUTABLE_COLUMNS = frozenset({"status", "face_descriptor", "created_at", "updated_at", "version"})


class LostPersonRepository:
    """Repository for lost-and-found records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def find(self, record_id: str) -> Optional[LostPersonRecord]:
        """Get a record by its public id, or None."""
        stmt = (
            select(LostPersonRecord)
            .where(LostPersonRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, record_id: str) -> LostPersonRecord:
        """Get a record by its public id.

        Raises:
            RecordNotFoundError: If record not found
        """
        record = await self.find(record_id)
        if record is None:
            raise RecordNotFoundError(
                f"Person not found: {record_id}",
                details={"id": record_id}
            )
        return record

    async def upsert(self, record_id: str, values: Dict[str, Any]) -> LostPersonRecord:
        """Insert a record, or update the metadata of the stored one with the same id.

        An existing record keeps its status and face descriptor; status changes
        go through compare_and_update. Metadata updates bump the version.

        Args:
            record_id: Public record id
            values: Column values other than id and pk

        Returns:
            LostPersonRecord: Stored record

        Raises:
            InvalidTransitionError: If values would change the stored status
            InvalidDescriptorError: If values would replace the stored descriptor
            ConcurrentModificationError: If the record changed while being updated
        """
        record = await self.find(record_id)
        if record is None:
            record = LostPersonRecord(id=record_id, **values)
            self._session.add(record)
            await self._session.flush()
            return record

        if values["status"] != record.status:
            raise InvalidTransitionError(
                f"Cannot move person {record_id} from '{record.status}' to '{values['status']}' by upsert",
                details={"id": record_id, "from": record.status, "to": values["status"]}
            )
        if values["face_descriptor"] != record.face_descriptor:
            raise InvalidDescriptorError(
                f"Face descriptor of person {record_id} cannot be replaced",
                details={"id": record_id}
            )

        metadata = {key: value for key, value in values.items() if key not in UPSERT_IMMUTABLE_COLUMNS}
        metadata["updated_at"] = utcnow()
        if not await self.compare_and_update(record_id, metadata, expected_version=record.version):
            raise ConcurrentModificationError(
                f"Person {record_id} was modified concurrently",
                details={"id": record_id, "expected_version": record.version}
            )
        return await self.get(record_id)

    async def list_with_descriptors(
        self,
        status: Optional[str] = None,
        exclude_status: Optional[str] = None,
    ) -> List[LostPersonRecord]:
        """List records in insertion order, optionally filtered by status."""
        stmt = select(LostPersonRecord).order_by(LostPersonRecord.pk.asc())
        if status is not None:
            stmt = stmt.where(LostPersonRecord.status == status)
        if exclude_status is not None:
            stmt = stmt.where(LostPersonRecord.status != exclude_status)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_recent(self, status: Optional[str] = None, limit: Optional[int] = None) -> List[LostPersonRecord]:
        """List records newest first."""
        stmt = select(LostPersonRecord).order_by(LostPersonRecord.pk.desc())
        if status is not None:
            stmt = stmt.where(LostPersonRecord.status == status)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def compare_and_update(
        self,
        record_id: str,
        values: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> bool:
        """Update a record and bump its version in one statement.

        Args:
            record_id: Public record id
            values: Column values to set
            expected_version: Only update if the stored version still matches

        Returns:
            bool: False if no row was updated (missing record or version mismatch)
        """
        stmt = (
            update(LostPersonRecord)
            .where(LostPersonRecord.id == record_id)
            .values(**values, version=LostPersonRecord.version + 1)
            .execution_options(synchronize_session=False)
        )
        if expected_version is not None:
            stmt = stmt.where(LostPersonRecord.version == expected_version)
        result = await self._session.execute(stmt)
        return result.rowcount == 1


class DevoteeRepository:
    """Repository for registered devotees."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, values: Dict[str, Any]) -> DevoteeRecord:
        """Create a new devotee record.

        Args:
            values: Column values including the public id

        Returns:
            DevoteeRecord: Created record
        """
        record = DevoteeRecord(**values)
        self._session.add(record)
        await self._session.flush()
        return record

    async def list_with_descriptors(self) -> List[DevoteeRecord]:
        """List devotees that have a face descriptor, newest first."""
        stmt = (
            select(DevoteeRecord)
            .where(DevoteeRecord.face_descriptor.is_not(None))
            .order_by(DevoteeRecord.pk.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
