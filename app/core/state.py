"""Process-wide review state: one ReviewStore and its decoration projection."""

from functools import lru_cache

from app.core.config import get_settings
from app.services.decoration import DecorationProjection
from app.services.review_runner import ReviewRunner
from app.services.store import ReviewStore


@lru_cache
def get_store() -> ReviewStore:
    """Dependency returning the single store instance shared by all routes."""
    settings = get_settings()
    return ReviewStore(
        categories=settings.REVIEW_CATEGORIES,
        fail_threshold=settings.REVIEW_FAIL_CONFIDENCE_THRESHOLD,
        low_confidence_threshold=settings.REVIEW_LOW_CONFIDENCE_THRESHOLD,
    )


@lru_cache
def get_projection() -> DecorationProjection:
    """Dependency returning the decoration projection bound to the shared store."""
    return DecorationProjection(get_store())


@lru_cache
def get_runner() -> ReviewRunner:
    """Dependency returning the review runner bound to the shared store."""
    return ReviewRunner(get_store())


def reset_state() -> None:
    """Drop the shared instances (used by tests to start from an empty session)."""
    if get_projection.cache_info().currsize:
        get_projection().close()
    get_runner.cache_clear()
    get_projection.cache_clear()
    get_store.cache_clear()
