"""Review ingestion and editing.

Both operations update the owning canteen's aggregates in the same
transaction that writes the review. Aggregates are always rebuilt from the
distribution and vote state read inside that transaction, so a retried
attempt starts from whatever the winning writer committed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.core.exceptions import CanteenNotFound, InvalidReview, NotOwner, ReviewNotFound
from canteen_registry.db.transaction import run_in_transaction
from canteen_registry.models.canteen import Canteen
from canteen_registry.models.review import Review
from canteen_registry.schemas.canteen import CanteenInfo
from canteen_registry.schemas.review import ReviewAttributes, ReviewEdit, ReviewSubmission, SubmitResult
from canteen_registry.services import aggregates

logger = logging.getLogger(__name__)

_REVIEW_NAMESPACE = uuid.UUID("6f0f4a52-5d1c-4c8e-9a43-2f61b8d0c7e1")


def review_id_for(canteen_key: str, client_id: str) -> str:
    """Deterministic review id for a (canteen, client) pair."""
    return uuid.uuid5(_REVIEW_NAMESPACE, f"{canteen_key}\x1f{client_id}").hex


def _attributes_of(review: Review) -> ReviewAttributes:
    return ReviewAttributes(
        payment_type=review.payment_type,
        price=review.price,
        serving_type=review.serving_type,
        employee_discount=review.employee_discount,
    )


def _write_attributes(review: Review, attrs: ReviewAttributes) -> None:
    review.payment_type = attrs.payment_type.value if attrs.payment_type else None
    review.price = attrs.price
    review.serving_type = attrs.serving_type.value if attrs.serving_type else None
    review.employee_discount = attrs.employee_discount


def _require_client(client_id: str | None) -> str:
    client_id = (client_id or "").strip()
    if not client_id:
        raise InvalidReview("client_id is required")
    return client_id


async def _load_canteen(db: AsyncSession, canteen_key: str) -> Canteen:
    canteen = await db.get(Canteen, canteen_key, populate_existing=True)
    if canteen is None:
        raise CanteenNotFound(canteen_key)
    return canteen


async def submit_review(
    db: AsyncSession,
    canteen_key: str,
    client_id: str,
    submission: ReviewSubmission,
) -> SubmitResult:
    """Create a client's review and fold it into the canteen's aggregates.

    Returns ``SubmitResult(duplicate=True)`` without writing anything when the
    client already reviewed this canteen.
    """
    client_id = _require_client(client_id)
    review_id = review_id_for(canteen_key, client_id)

    existing = await db.execute(
        select(Review.id).where(Review.canteen_key == canteen_key, Review.client_id == client_id).limit(1)
    )
    if existing.first() is not None:
        logger.info("Duplicate review ignored: canteen=%s", canteen_key)
        return SubmitResult(created=False, duplicate=True)

    async def work(session: AsyncSession) -> SubmitResult:
        # Re-checked here: a concurrent submit may have committed since the pre-check
        if await session.get(Review, review_id, populate_existing=True) is not None:
            return SubmitResult(created=False, duplicate=True)

        canteen = await _load_canteen(session, canteen_key)
        now = datetime.now(timezone.utc)

        distribution = aggregates.adjust_distribution(canteen.rating_distribution or {}, add=submission.rating)
        info = aggregates.apply_attributes(
            CanteenInfo.model_validate(canteen.info or {}), submission.attributes()
        )
        canteen.total_reviews = (canteen.total_reviews or 0) + 1
        canteen.rating_distribution = distribution
        canteen.average_rating = aggregates.recompute_average(distribution)
        canteen.info = info.model_dump(mode="json")
        canteen.updated_at = now

        review = Review(
            id=review_id,
            canteen_key=canteen_key,
            rating=submission.rating,
            comment=submission.comment,
            company_name=submission.company_name,
            client_id=client_id,
            created_at=now,
        )
        _write_attributes(review, submission.attributes())
        session.add(review)
        await session.flush()
        return SubmitResult(created=True, review_id=review_id)

    result = await run_in_transaction(db, work, retry_key_conflicts=True)
    if result.duplicate:
        logger.info("Duplicate review rejected in transaction: canteen=%s", canteen_key)
    else:
        logger.info("Review %s created for canteen=%s rating=%d", result.review_id, canteen_key, submission.rating)
    return result


async def edit_review(
    db: AsyncSession,
    canteen_key: str,
    review_id: str,
    client_id: str,
    edit: ReviewEdit,
) -> Review:
    """Rewrite a review in place and apply the delta to the canteen's aggregates."""
    client_id = _require_client(client_id)

    async def work(session: AsyncSession) -> Review:
        review = await session.get(Review, review_id, populate_existing=True)
        if review is None or review.canteen_key != canteen_key:
            raise ReviewNotFound(review_id)
        if review.client_id != client_id:
            raise NotOwner(review_id)
        canteen = await _load_canteen(session, canteen_key)
        now = datetime.now(timezone.utc)

        old_attrs = _attributes_of(review)
        new_attrs = edit.attributes()

        if review.rating != edit.rating:
            distribution = aggregates.adjust_distribution(
                canteen.rating_distribution or {}, add=edit.rating, remove=review.rating
            )
            canteen.rating_distribution = distribution
            canteen.average_rating = aggregates.recompute_average(distribution)

        if old_attrs != new_attrs:
            info = CanteenInfo.model_validate(canteen.info or {})
            info = aggregates.retract_attributes(info, old_attrs)
            info = aggregates.apply_attributes(info, new_attrs)
            canteen.info = info.model_dump(mode="json")

        canteen.updated_at = now
        review.rating = edit.rating
        review.comment = edit.comment
        _write_attributes(review, new_attrs)
        review.updated_at = now
        await session.flush()
        return review

    review = await run_in_transaction(db, work)
    logger.info("Review %s edited for canteen=%s", review_id, canteen_key)
    return review
