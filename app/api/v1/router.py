"""API v1 router - aggregates all v1 endpoints."""

from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.bookmarks import router as bookmarks_router
from app.api.v1.summarize import router as summarize_router

router = APIRouter(prefix="/api/v1")

router.include_router(auth_router)
router.include_router(bookmarks_router)
router.include_router(summarize_router)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
