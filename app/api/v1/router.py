from fastapi import APIRouter

from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.me import router as me_router
from app.api.v1.endpoints.analyze import router as analyze_router
from app.api.v1.endpoints.upload import router as upload_router
from app.api.v1.endpoints.listings import router as listings_router
from app.api.v1.endpoints.blobs import router as blobs_router
from app.schemas.common import ErrorResponse


ERROR_RESPONSES = {status: {"model": ErrorResponse} for status in (400, 401, 404, 500)}

router = APIRouter(prefix="/v1", responses=ERROR_RESPONSES)
router.include_router(health_router, tags=["health"])
router.include_router(me_router, tags=["me"])
router.include_router(analyze_router, tags=["analyze"])
router.include_router(upload_router, tags=["upload"])
router.include_router(listings_router, tags=["listings"])
router.include_router(blobs_router, tags=["blobs"])
