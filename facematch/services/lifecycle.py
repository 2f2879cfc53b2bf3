"""Lifecycle manager for lost-and-found status transitions."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from facematch.core.config import settings
from facematch.core.exceptions import ConcurrentModificationError
from facematch.core.logging import get_logger
from facematch.domain.entities.person import ContactInfo, LostPerson
from facematch.domain.entities.status import PersonStatus, ensure_transition
from facematch.domain.interfaces.storage.descriptor_store import DescriptorStore

logger = get_logger(__name__)

LOCK_POLICIES = ("fail", "wait")


class KeyedLocks:
    """Table of asyncio locks keyed by record id.

    Entries exist only while a task holds or waits for the lock.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: str, wait: bool, timeout: Optional[float] = None) -> AsyncIterator[None]:
        """Hold the lock for `key`.

        Args:
            key: Record id
            wait: Queue behind the current holder instead of failing
            timeout: Seconds to wait before giving up (only with wait=True)

        Raises:
            ConcurrentModificationError: If the lock is held and wait is False,
                or the wait timed out
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()

        if not wait and lock.locked():
            raise ConcurrentModificationError(
                f"Another update of person {key} is in progress",
                details={"id": key}
            )

        self._users[key] = self._users.get(key, 0) + 1
        try:
            if wait:
                try:
                    # 3.12+ wait_for cancels acquire() in place; the lock is never left held
                    await asyncio.wait_for(lock.acquire(), timeout)
                except asyncio.TimeoutError:
                    raise ConcurrentModificationError(
                        f"Timed out waiting for another update of person {key}",
                        details={"id": key, "timeout": timeout}
                    )
            else:
                # Unlocked with no waiters: acquires without suspending
                await lock.acquire()
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


class LifecycleManager:
    """Applies status transitions to lost-and-found records.

    At most one mutation per record id is in flight at a time in this process;
    the store's version check catches writers in other processes. A failed
    transition leaves the stored record untouched.

    Example:
        ```python
        manager = LifecycleManager(store)
        person = await manager.transition(person_id, PersonStatus.FOUND, "Help desk 4")
        ```
    """

    def __init__(
        self,
        store: DescriptorStore,
        policy: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the lifecycle manager.

        Args:
            store: Descriptor store holding the records
            policy: "fail" or "wait" when a record is already being updated
                (defaults to settings.TRANSITION_LOCK_POLICY)
            timeout: Seconds to wait under the "wait" policy
                (defaults to settings.TRANSITION_LOCK_TIMEOUT)
        """
        self.store = store
        self.policy = policy or settings.TRANSITION_LOCK_POLICY
        if self.policy not in LOCK_POLICIES:
            raise ValueError(f"Unknown lock policy: {self.policy}")
        self.timeout = settings.TRANSITION_LOCK_TIMEOUT if timeout is None else timeout
        self._locks = KeyedLocks()

    def _hold(self, record_id: str):
        return self._locks.hold(record_id, wait=self.policy == "wait", timeout=self.timeout)

    async def transition(
        self,
        record_id: str,
        target: PersonStatus,
        location_update: Optional[str] = None,
    ) -> LostPerson:
        """Move a record to a new status.

        Args:
            record_id: Record to transition
            target: Requested status
            location_update: New current_location, stored with the transition

        Returns:
            The updated record

        Raises:
            RecordNotFoundError: If the record does not exist
            InvalidTransitionError: If the record's current status cannot move to target
            ConcurrentModificationError: If another update of the record raced this one
            StoreUnavailableError: If the store fails
        """
        target = PersonStatus(target)
        async with self._hold(record_id):
            record = await self.store.get_record(record_id)
            ensure_transition(record_id, record.status, target)

            updated = await self.store.update_status(
                record_id,
                target,
                location_update=location_update,
                expected_version=record.version
            )

        logger.info(
            "Person status changed",
            person_id=record_id,
            from_status=record.status.value,
            to_status=target.value,
            version=updated.version
        )
        return updated

    async def update_details(
        self,
        record_id: str,
        current_location: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
    ) -> LostPerson:
        """Update the location or contact details of a record without changing its status.

        Raises:
            RecordNotFoundError: If the record does not exist
            ConcurrentModificationError: If another update of the record raced this one
            StoreUnavailableError: If the store fails
        """
        async with self._hold(record_id):
            record = await self.store.get_record(record_id)
            if current_location is None and contact_info is None:
                return record

            updated = await self.store.update_details(
                record_id,
                current_location=current_location,
                contact_info=contact_info,
                expected_version=record.version
            )

        logger.info("Person details updated", person_id=record_id, version=updated.version)
        return updated
