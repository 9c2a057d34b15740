"""Read-only accessors for canteens and reviews."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.core.config import settings
from canteen_registry.models.canteen import Canteen
from canteen_registry.models.review import Review
from canteen_registry.schemas.canteen import Coordinates
from canteen_registry.schemas.review import RecentReviewOut, ReviewOut
from canteen_registry.services.canteens import canteens_at_address
from canteen_registry.services.geocoding import Geocoder

logger = logging.getLogger(__name__)


async def get_canteen(db: AsyncSession, canteen_key: str) -> Optional[Canteen]:
    return await db.get(Canteen, canteen_key, populate_existing=True)


async def list_canteens_at_address(db: AsyncSession, base_address_key: str) -> list[Canteen]:
    return await canteens_at_address(db, base_address_key)


async def get_review_by_client(db: AsyncSession, canteen_key: str, client_id: str) -> Optional[Review]:
    """The client's own review of a canteen, if any."""
    if not client_id:
        return None
    stmt = (
        select(Review)
        .where(Review.canteen_key == canteen_key, Review.client_id == client_id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalars().first()


async def list_reviews(db: AsyncSession, canteen_key: str, limit: int | None = None) -> list[Review]:
    """Newest reviews of one canteen."""
    limit = limit or settings.canteen_reviews_limit
    stmt = (
        select(Review)
        .where(Review.canteen_key == canteen_key)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


async def top_canteens(db: AsyncSession, limit: int | None = None) -> list[Canteen]:
    """Canteens with the most reviews."""
    limit = limit or settings.top_canteens_limit
    stmt = (
        select(Canteen)
        .order_by(Canteen.total_reviews.desc(), Canteen.address_key)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


async def recent_reviews(db: AsyncSession, limit: int | None = None) -> list[RecentReviewOut]:
    """Newest reviews across all canteens, each with its canteen's address."""
    limit = limit or settings.recent_reviews_limit
    stmt = (
        select(Review, Canteen.address_key, Canteen.street, Canteen.city)
        .join(Canteen, Review.canteen_key == Canteen.address_key)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    rows = (await db.execute(stmt)).all()
    return [
        RecentReviewOut(
            **ReviewOut.model_validate(review).model_dump(),
            address_key=address_key,
            street=street,
            city=city,
        )
        for review, address_key, street, city in rows
    ]


async def locate_canteen(canteen: Canteen, geocoder: Optional[Geocoder]) -> Optional[Coordinates]:
    """Map coordinates for a canteen; None when unknown."""
    if geocoder is None:
        return None
    return await geocoder.geocode(canteen.street, canteen.postal_code, canteen.city)
