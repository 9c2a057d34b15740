"""Review endpoints."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.core.config import settings
from canteen_registry.db.session import get_db
from canteen_registry.schemas.review import (
    RecentReviewOut,
    ReviewEditRequest,
    ReviewOut,
    ReviewSubmitRequest,
    SubmitResult,
)
from canteen_registry.services import queries
from canteen_registry.services.reviews import edit_review, submit_review

router = APIRouter(tags=["reviews"])


@router.post("/canteens/{canteen_key}/reviews", response_model=SubmitResult)
async def create_review(
    canteen_key: str,
    payload: ReviewSubmitRequest,
    db: AsyncSession = Depends(get_db),
) -> SubmitResult:
    """Submit a review; ``duplicate`` is set when this client already reviewed."""
    return await submit_review(db, canteen_key, payload.client_id, payload)


@router.get(
    "/canteens/{canteen_key}/reviews/mine",
    response_model=ReviewOut,
    responses={204: {"description": "No review from this client"}},
)
async def get_my_review(canteen_key: str, client_id: str = "", db: AsyncSession = Depends(get_db)):
    review = await queries.get_review_by_client(db, canteen_key, client_id.strip())
    if review is None:
        return Response(status_code=204)
    return ReviewOut.model_validate(review)


@router.put("/canteens/{canteen_key}/reviews/{review_id}", response_model=ReviewOut)
async def update_review(
    canteen_key: str,
    review_id: str,
    payload: ReviewEditRequest,
    db: AsyncSession = Depends(get_db),
) -> ReviewOut:
    review = await edit_review(db, canteen_key, review_id, payload.client_id, payload)
    return ReviewOut.model_validate(review)


@router.get("/reviews/recent", response_model=list[RecentReviewOut])
async def list_recent_reviews(
    limit: int | None = Query(None, ge=1, le=settings.max_list_limit),
    db: AsyncSession = Depends(get_db),
) -> list[RecentReviewOut]:
    return await queries.recent_reviews(db, limit)
