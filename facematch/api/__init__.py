"""API v1 router initialization."""
from fastapi import APIRouter

from .devotees import router as devotees_router
from .lost_found import router as lost_found_router

# Create v1 router
router = APIRouter()

router.include_router(
    lost_found_router,
    prefix="/lost-found",
    tags=["lost-found"]
)
router.include_router(
    devotees_router,
    prefix="/devotees",
    tags=["devotees"]
)
