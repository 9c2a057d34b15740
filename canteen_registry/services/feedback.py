"""Site feedback intake."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.core.exceptions import InvalidFeedback
from canteen_registry.models.feedback import Feedback

FEEDBACK_MAX_LENGTH = 1000


async def add_feedback(db: AsyncSession, message: str | None) -> Feedback:
    """Store a trimmed feedback message."""
    message = (message or "").strip()
    if not message or len(message) > FEEDBACK_MAX_LENGTH:
        raise InvalidFeedback("Feedback must be 1-1000 characters")
    try:
        feedback = Feedback(message=message, created_at=datetime.now(timezone.utc))
        db.add(feedback)
        await db.commit()
        return feedback
    except Exception:
        await db.rollback()
        raise
