"""Canteen endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.api.deps import get_company_directory, get_geocoder
from canteen_registry.core.config import settings
from canteen_registry.core.exceptions import CanteenNotFound, CompanyMissingAddress
from canteen_registry.db.session import get_db
from canteen_registry.schemas.canteen import (
    CanteenDetail,
    CanteenOut,
    CanteenSelectRequest,
    Resolution,
)
from canteen_registry.schemas.review import ReviewOut
from canteen_registry.services import queries
from canteen_registry.services.canteens import register_company
from canteen_registry.services.company_directory import CompanyDirectory
from canteen_registry.services.geocoding import Geocoder

router = APIRouter(prefix="/canteens", tags=["canteens"])


@router.post("/select", response_model=Resolution)
async def select_canteen(
    payload: CanteenSelectRequest,
    db: AsyncSession = Depends(get_db),
    directory: CompanyDirectory = Depends(get_company_directory),
) -> Resolution:
    """Find, join or create the canteen for a company.

    Returns ``choose`` with candidates when the company is new at an address;
    the client then calls again with ``choice``.
    """
    company = await directory.get_by_id(payload.org_id)
    if company is None:
        raise CompanyMissingAddress(payload.org_id)
    return await register_company(
        db,
        company,
        choice=payload.choice,
        selected_canteen=payload.selected_canteen,
        canteen_name=payload.canteen_name,
    )


@router.get("/top", response_model=list[CanteenOut])
async def list_top_canteens(
    limit: int | None = Query(None, ge=1, le=settings.max_list_limit),
    db: AsyncSession = Depends(get_db),
) -> list[CanteenOut]:
    canteens = await queries.top_canteens(db, limit)
    return [CanteenOut.model_validate(c) for c in canteens]


@router.get("/{canteen_key}", response_model=CanteenDetail)
async def get_canteen(
    canteen_key: str,
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder | None = Depends(get_geocoder),
) -> CanteenDetail:
    """Canteen aggregates, newest reviews and map coordinates."""
    canteen = await queries.get_canteen(db, canteen_key)
    if canteen is None:
        raise CanteenNotFound(canteen_key)
    reviews = await queries.list_reviews(db, canteen_key)
    return CanteenDetail(
        canteen=CanteenOut.model_validate(canteen),
        reviews=[ReviewOut.model_validate(r) for r in reviews],
        coordinates=await queries.locate_canteen(canteen, geocoder),
    )
