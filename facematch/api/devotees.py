"""Devotee registration and face search endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from facematch.api.models.devotee import (
    DevoteeMatchResponse,
    DevoteeRegistrationRequest,
    DevoteeResponse,
    DevoteeSearchRequest,
)
from facematch.core.exceptions import (
    DuplicateRecordError,
    InvalidDescriptorError,
    StoreUnavailableError,
)
from facematch.core.logging import get_logger
from facematch.infrastructure.dependencies import get_devotee_search_service
from facematch.services.face_matching import DevoteeSearchService
from facematch.services.models import DevoteeRegistration

logger = get_logger(__name__)
router = APIRouter(
    tags=["devotees"],
    responses={
        400: {"description": "Invalid face descriptor"},
        503: {"description": "Descriptor store unavailable"},
        500: {"description": "Internal server error"}
    }
)


@router.post(
    "",
    response_model=DevoteeResponse,
    status_code=201,
    summary="Register a devotee",
)
async def register_devotee(
    request: DevoteeRegistrationRequest,
    service: DevoteeSearchService = Depends(get_devotee_search_service)
) -> DevoteeResponse:
    """Register a devotee, with a face descriptor when a selfie was captured."""
    try:
        devotee = await service.register(
            DevoteeRegistration(**request.model_dump(exclude={"face_descriptor"})),
            descriptor=request.face_descriptor
        )
        return DevoteeResponse.from_devotee(devotee)

    except InvalidDescriptorError as e:
        logger.warning("Rejected registration with invalid descriptor", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except DuplicateRecordError as e:
        logger.error("Could not allocate a registration number", error=str(e))
        raise HTTPException(status_code=409, detail="Failed to create devotee")
    except StoreUnavailableError as e:
        logger.error("Failed to store devotee", error=str(e))
        raise HTTPException(status_code=503, detail="Failed to create devotee")
    except Exception as e:
        logger.error("Unexpected error during registration", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create devotee")


@router.post(
    "/search-by-face",
    response_model=List[DevoteeMatchResponse],
    summary="Search devotees by face",
    description="Returns registered devotees whose face descriptor is within the distance threshold, closest first.",
)
async def search_by_face(
    request: DevoteeSearchRequest,
    service: DevoteeSearchService = Depends(get_devotee_search_service)
) -> List[DevoteeMatchResponse]:
    try:
        matches = await service.search_by_face(
            request.face_descriptor,
            max_distance=request.max_distance
        )
        return [DevoteeMatchResponse.from_match(match) for match in matches]

    except InvalidDescriptorError as e:
        logger.warning("Rejected devotee search with invalid descriptor", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        logger.error("Failed to load devotees", error=str(e))
        raise HTTPException(status_code=503, detail="Failed to search devotees by face")
    except Exception as e:
        logger.error("Unexpected error during devotee search", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search devotees by face")
