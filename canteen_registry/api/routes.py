"""Root API router."""

from fastapi import APIRouter

from canteen_registry.api.endpoints import canteens, companies, feedback, reviews

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "ok"}


router.include_router(companies.router)
router.include_router(canteens.router)
router.include_router(reviews.router)
router.include_router(feedback.router)
