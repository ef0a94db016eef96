"""Top-level API router: mounts every authenticated endpoint group under /api."""

from fastapi import APIRouter

from metrics_service.presentation.api.endpoints.ai_tracking import router as ai_tracking_router
from metrics_service.presentation.api.endpoints.analytics import router as analytics_router
from metrics_service.presentation.api.endpoints.performance import router as performance_router
from metrics_service.presentation.api.endpoints.metrics import router as metrics_router

router = APIRouter(prefix="/api")
router.include_router(ai_tracking_router)
router.include_router(analytics_router)
router.include_router(performance_router)
router.include_router(metrics_router)
