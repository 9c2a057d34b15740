"""Feedback endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.db.session import get_db
from canteen_registry.schemas.feedback import FeedbackRequest
from canteen_registry.services.feedback import add_feedback

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", status_code=201)
async def create_feedback(payload: FeedbackRequest, db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    await add_feedback(db, payload.message)
    return {"status": "received"}
