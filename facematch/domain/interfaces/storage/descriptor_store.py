"""Store interfaces for persons and their face descriptors."""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ...entities.person import ContactInfo, Devotee, LostPerson
from ...entities.status import PersonStatus


class DescriptorStore(ABC):
    """Interface for persisting lost-and-found records and their descriptors."""

    @abstractmethod
    async def list_descriptors(
        self,
        status_filter: Optional[PersonStatus] = None,
        exclude_status: Optional[PersonStatus] = None,
    ) -> List[Tuple[LostPerson, List[float]]]:
        """
        List candidate records with their descriptors in a single call.

        Args:
            status_filter: Only return records with this status
            exclude_status: Skip records with this status

        Returns:
            (record, descriptor) pairs, oldest first

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        pass

    @abstractmethod
    async def get_record(self, record_id: str) -> LostPerson:
        """
        Get a single record.

        Raises:
            RecordNotFoundError: If no record has this id
            StoreUnavailableError: If the store cannot be queried
        """
        pass

    @abstractmethod
    async def upsert_record(self, record: LostPerson) -> LostPerson:
        """
        Insert a record, or update the metadata of the stored record with the same id.

        An existing record keeps its status and face descriptor; a metadata
        update bumps its version and updated_at.

        Returns:
            The record as persisted

        Raises:
            InvalidTransitionError: If the record would change the stored status
            InvalidDescriptorError: If the record would replace the stored descriptor
            ConcurrentModificationError: If the stored record changed during the update
            StoreUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def update_status(
        self,
        record_id: str,
        new_status: PersonStatus,
        location_update: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> LostPerson:
        """
        Set the status of a record and bump its version and updated_at.

        Args:
            record_id: Record to update
            new_status: Status to store
            location_update: New current_location, if any
            expected_version: Apply only if the stored version still matches

        Returns:
            The updated record

        Raises:
            RecordNotFoundError: If no record has this id
            ConcurrentModificationError: If the stored version differs from expected_version
            StoreUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def update_details(
        self,
        record_id: str,
        current_location: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
        expected_version: Optional[int] = None,
    ) -> LostPerson:
        """
        Update current_location and/or contact_info without touching the status.

        Raises:
            RecordNotFoundError: If no record has this id
            ConcurrentModificationError: If the stored version differs from expected_version
            StoreUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def list_records(
        self,
        status: Optional[PersonStatus] = None,
        limit: Optional[int] = None,
    ) -> List[LostPerson]:
        """
        List records, newest first.

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        pass


class DevoteeStore(ABC):
    """Interface for registered devotees that can be searched by face."""

    @abstractmethod
    async def add_devotee(self, devotee: Devotee) -> Devotee:
        """
        Persist a newly registered devotee.

        Raises:
            DuplicateRecordError: If the id or registration number is taken
            StoreUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def list_devotee_descriptors(self) -> List[Tuple[Devotee, List[float]]]:
        """
        List devotees that have a face descriptor, newest first.

        Raises:
            StoreUnavailableError: If the store cannot be queried
        """
        pass
