"""Health check endpoint with review session counters."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.state import get_store
from app.schemas.health import HealthResponse
from app.services.store import ReviewStore

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(store: Annotated[ReviewStore, Depends(get_store)]) -> HealthResponse:
    """
    Return service health status and the size of the current review session.
    Used by load balancers and monitoring.
    """
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        tracked_files=len(store.tracked_files),
        reviewed_files=len(store),
        backend="configured" if settings.ANALYSIS_BACKEND_URL else "not_configured",
    )
