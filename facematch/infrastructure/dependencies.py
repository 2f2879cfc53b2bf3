"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from facematch.core.container import ServiceContainer, container
from facematch.core.exceptions import ServiceNotInitializedError
from facematch.services.face_matching import DevoteeSearchService, FaceMatchingService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance."""
    if not container.initialized:
        try:
            await container.initialize()
        except Exception as e:
            raise ServiceNotInitializedError(f"Service container could not be initialized: {e}")
    return container


async def get_face_matching_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FaceMatchingService, None]:
    """Provide the lost-and-found face matching service.

    Raises:
        ServiceNotInitializedError: If service is not initialized
    """
    if container.face_matching_service is None:
        raise ServiceNotInitializedError("FaceMatchingService not found in initialized container")
    yield container.face_matching_service


async def get_devotee_search_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[DevoteeSearchService, None]:
    """Provide the devotee search service.

    Raises:
        ServiceNotInitializedError: If service is not initialized
    """
    if container.devotee_search_service is None:
        raise ServiceNotInitializedError("DevoteeSearchService not found in initialized container")
    yield container.devotee_search_service
