"""Service container for dependency injection."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from facematch.infrastructure.database.session import (
    create_engine,
    create_schema,
    create_session_factory,
)
from facematch.infrastructure.storage.sql_store import SqlDescriptorStore
from facematch.services.face_matching import DevoteeSearchService, FaceMatchingService
from facematch.services.lifecycle import LifecycleManager


class ServiceContainer:
    """Container for application services.

    This container manages the lifecycle and dependencies of all services in the application.
    It ensures proper initialization order and provides a single source of truth for service instances.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        # Get services from container
        face_matching = container.face_matching_service
        devotee_search = container.devotee_search_service
        ```
    """

    def __init__(self) -> None:
        """Initialize empty container."""
        self.engine: Optional[AsyncEngine] = None
        self.store: Optional[SqlDescriptorStore] = None

        # Domain services
        self.lifecycle_manager: Optional[LifecycleManager] = None
        self.face_matching_service: Optional[FaceMatchingService] = None
        self.devotee_search_service: Optional[DevoteeSearchService] = None

    @property
    def initialized(self) -> bool:
        return self.face_matching_service is not None

    async def initialize(self, database_url: Optional[str] = None) -> None:
        """Initialize all services in the correct order.

        Args:
            database_url: Override of settings.DATABASE_URL
        """
        self.engine = create_engine(database_url)
        await create_schema(self.engine)
        self.store = SqlDescriptorStore(create_session_factory(self.engine))

        # One lifecycle manager per process so per-record locks are shared
        self.lifecycle_manager = LifecycleManager(self.store)
        self.face_matching_service = FaceMatchingService(
            store=self.store,
            lifecycle=self.lifecycle_manager
        )
        self.devotee_search_service = DevoteeSearchService(store=self.store)

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        self.devotee_search_service = None
        self.face_matching_service = None
        self.lifecycle_manager = None
        self.store = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None


# Global container instance
container = ServiceContainer()
