"""Lost-and-found API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from facematch.api.models.lost_found import (
    DetailsUpdateRequest,
    FaceMatchingRequest,
    FaceMatchingResponse,
    PersonResponse,
    SightingReportRequest,
    StatusTransitionRequest,
)
from facematch.core.exceptions import (
    ConcurrentModificationError,
    InvalidDescriptorError,
    InvalidTransitionError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from facematch.core.logging import get_logger
from facematch.domain.entities.status import PersonStatus
from facematch.infrastructure.dependencies import get_face_matching_service
from facematch.services.face_matching import FaceMatchingService
from facematch.services.models import SightingReport

logger = get_logger(__name__)
router = APIRouter(
    tags=["lost-found"],
    responses={
        400: {"description": "Invalid face descriptor"},
        503: {"description": "Descriptor store unavailable"},
        500: {"description": "Internal server error"}
    }
)


@router.post(
    "/report",
    response_model=PersonResponse,
    status_code=201,
    summary="Report a missing or found person",
)
async def report_person(
    request: SightingReportRequest,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> PersonResponse:
    """Register a new lost-and-found report with its face descriptor."""
    try:
        person = await service.report_sighting(
            request.face_descriptor,
            SightingReport(**request.model_dump(exclude={"face_descriptor"}))
        )
        return PersonResponse.from_person(person)

    except InvalidDescriptorError as e:
        logger.warning("Rejected report with invalid descriptor", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransitionError as e:
        logger.warning("Rejected report with invalid initial status", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        logger.error("Failed to store report", error=str(e))
        raise HTTPException(status_code=503, detail="Failed to report person")
    except Exception as e:
        logger.error("Unexpected error during report", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to report person")


@router.post(
    "/match",
    response_model=FaceMatchingResponse,
    summary="Match a face against reported persons",
    responses={
        200: {
            "description": "Matches, closest first",
            "content": {
                "application/json": {
                    "example": {
                        "matches": [
                            {
                                "person": {
                                    "id": "550e8400-e29b-41d4-a716-446655440000",
                                    "name": "Unknown",
                                    "gender": "Female",
                                    "photo_url": "photos/2026/ghat-7/1234.jpg",
                                    "status": "missing",
                                    "last_seen_location": "Ram Ghat",
                                },
                                "distance": 0.41,
                                "similarity": 0.66,
                            }
                        ]
                    }
                }
            },
        },
    },
)
async def match_face(
    request: FaceMatchingRequest,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> FaceMatchingResponse:
    """Find reported persons whose face descriptor is within the distance threshold."""
    try:
        result = await service.match_face(
            request.face_descriptor,
            status_filter=request.status_filter,
            max_distance=request.max_distance
        )
        return FaceMatchingResponse.from_service_response(result)

    except InvalidDescriptorError as e:
        logger.warning("Rejected match with invalid descriptor", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        logger.error("Failed to load match candidates", error=str(e))
        raise HTTPException(status_code=503, detail="Failed to match face")
    except Exception as e:
        logger.error("Unexpected error during face matching", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to match face")


@router.get(
    "/list",
    response_model=List[PersonResponse],
    summary="List recent reports",
)
async def list_people(
    status: Optional[PersonStatus] = Query(None, description="Only list records with this status"),
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> List[PersonResponse]:
    """List the most recent reports, newest first."""
    try:
        people = await service.list_by_status(status)
        return [PersonResponse.from_person(person) for person in people]
    except StoreUnavailableError as e:
        logger.error("Failed to list reports", error=str(e))
        raise HTTPException(status_code=503, detail="Failed to fetch list")


@router.get(
    "/{person_id}",
    response_model=PersonResponse,
    summary="Get a report",
)
async def get_person(
    person_id: str,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> PersonResponse:
    try:
        return PersonResponse.from_person(await service.get_person(person_id))
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        logger.error("Failed to fetch report", person_id=person_id, error=str(e))
        raise HTTPException(status_code=503, detail="Failed to fetch person")


@router.post(
    "/{person_id}/status",
    response_model=PersonResponse,
    summary="Change the status of a report",
    responses={
        404: {"description": "Person not found"},
        409: {"description": "Transition not allowed or raced with another update"},
    },
)
async def transition_status(
    person_id: str,
    request: StatusTransitionRequest,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> PersonResponse:
    """Mark a person as found or reunited."""
    try:
        person = await service.transition_status(
            person_id,
            request.status,
            location_update=request.current_location
        )
        return PersonResponse.from_person(person)

    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        logger.warning("Rejected status transition", person_id=person_id, details=e.details)
        raise HTTPException(status_code=409, detail=str(e))
    except ConcurrentModificationError as e:
        logger.warning("Status transition raced another update", person_id=person_id, error=str(e))
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailableError as e:
        logger.error("Failed to store status transition", person_id=person_id, error=str(e))
        raise HTTPException(status_code=503, detail="Failed to update status")


@router.patch(
    "/{person_id}",
    response_model=PersonResponse,
    summary="Update location or contact details of a report",
)
async def update_details(
    person_id: str,
    request: DetailsUpdateRequest,
    service: FaceMatchingService = Depends(get_face_matching_service)
) -> PersonResponse:
    try:
        person = await service.update_details(
            person_id,
            current_location=request.current_location,
            contact_info=request.contact_info
        )
        return PersonResponse.from_person(person)

    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrentModificationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailableError as e:
        logger.error("Failed to update report", person_id=person_id, error=str(e))
        raise HTTPException(status_code=503, detail="Failed to update person")
