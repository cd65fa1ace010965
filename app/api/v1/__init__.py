"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import files, health, reviews

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(files.router, prefix="/files", tags=["files"])
router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
