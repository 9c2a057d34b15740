"""Canteen identity resolution.

Several canteens may share one postal address. The first canteen at an
address is keyed by the base address key itself; further ones get
``<base>_2``, ``<base>_3`` and so on. A company that already belongs to any
canteen at its address is sent straight back there; a new company is asked
to pick one or create another.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.core.config import settings
from canteen_registry.core.exceptions import CanteenNotFound, TransactionConflict
from canteen_registry.db.transaction import run_in_transaction
from canteen_registry.models.canteen import Canteen
from canteen_registry.schemas.canteen import (
    CanteenChoice,
    CanteenInfo,
    CanteenSummary,
    Resolution,
    ResolutionAction,
)
from canteen_registry.schemas.company import Company
from canteen_registry.services.address import canonicalize_company_address
from canteen_registry.services.aggregates import empty_distribution

logger = logging.getLogger(__name__)


def _member_entry(company: Company, now: datetime) -> dict:
    return {"org_id": company.org_id, "name": company.name, "added_at": now.isoformat()}


async def canteens_at_address(db: AsyncSession, base_address_key: str) -> list[Canteen]:
    """Canteens at one address, oldest first.

    A row still missing ``base_address_key`` predates multi-canteen addresses
    and counts as the first canteen when it sits at the base key itself.
    """
    stmt = (
        select(Canteen)
        .where(
            or_(
                Canteen.base_address_key == base_address_key,
                and_(Canteen.base_address_key.is_(None), Canteen.address_key == base_address_key),
            )
        )
        .order_by(Canteen.created_at, Canteen.address_key)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


def _suffix_of(address_key: str, base_address_key: str) -> Optional[int]:
    prefix = f"{base_address_key}_"
    if not address_key.startswith(prefix):
        return None
    suffix = address_key[len(prefix):]
    return int(suffix) if suffix.isdigit() else None


async def next_canteen_key(db: AsyncSession, base_address_key: str) -> str:
    """Key for the next canteen at an address.

    The unsuffixed base key is slot 1, so the second canteen gets ``_2``.
    """
    existing = await canteens_at_address(db, base_address_key)
    if not existing:
        return base_address_key
    highest = 1
    for canteen in existing:
        suffix = _suffix_of(canteen.address_key, base_address_key)
        if suffix is not None:
            highest = max(highest, suffix)
    return f"{base_address_key}_{highest + 1}"


async def resolve_canteen(db: AsyncSession, company: Company, base_address_key: str) -> Resolution:
    """Decide which canteen ``company`` maps to at ``base_address_key``. Read-only."""
    existing = await canteens_at_address(db, base_address_key)
    if not existing:
        return Resolution(
            action=ResolutionAction.CREATE_FIRST,
            base_address_key=base_address_key,
            canteen_key=base_address_key,
        )

    for canteen in existing:
        if canteen.has_member(company.org_id):
            return Resolution(
                action=ResolutionAction.REUSE_EXISTING,
                base_address_key=base_address_key,
                canteen_key=canteen.address_key,
            )

    return Resolution(
        action=ResolutionAction.CHOOSE,
        base_address_key=base_address_key,
        candidates=[CanteenSummary.model_validate(c) for c in existing],
    )


async def upsert_membership(
    db: AsyncSession,
    canteen_key: str,
    company: Company,
    base_address_key: str,
    canteen_name: Optional[str] = None,
    create_only: bool = False,
) -> Optional[Canteen]:
    """Create the canteen with ``company`` as sole member, or join it.

    Joining always refreshes ``updated_at``, backfills a missing
    ``base_address_key`` and adds the company only if it is not a member yet.
    With ``create_only`` an existing canteen is left alone and None returned.
    """

    async def work(session: AsyncSession) -> Optional[Canteen]:
        canteen = await session.get(Canteen, canteen_key, populate_existing=True)
        now = datetime.now(timezone.utc)
        if canteen is not None and create_only:
            return None
        if canteen is None:
            address = company.address
            canteen = Canteen(
                address_key=canteen_key,
                base_address_key=base_address_key,
                canteen_name=canteen_name or None,
                street=address.street,
                postal_code=address.postal_code,
                city=address.city,
                municipality=address.municipality,
                municipality_number=address.municipality_number,
                companies=[_member_entry(company, now)],
                average_rating=0.0,
                total_reviews=0,
                rating_distribution=empty_distribution(),
                info=CanteenInfo().model_dump(mode="json"),
                created_at=now,
                updated_at=now,
            )
            session.add(canteen)
            logger.info("Created canteen %s for company %s", canteen_key, company.org_id)
        else:
            if not canteen.base_address_key:
                canteen.base_address_key = base_address_key
            if not canteen.has_member(company.org_id):
                canteen.companies = [*(canteen.companies or []), _member_entry(company, now)]
                logger.info("Company %s joined canteen %s", company.org_id, canteen_key)
            canteen.updated_at = now
        await session.flush()
        return canteen

    return await run_in_transaction(db, work, retry_key_conflicts=True)


async def register_company(
    db: AsyncSession,
    company: Company,
    choice: Optional[CanteenChoice] = None,
    selected_canteen: Optional[str] = None,
    canteen_name: Optional[str] = None,
) -> Resolution:
    """Map a directory company onto a canteen, creating or joining as needed.

    Without ``choice`` this resolves the company and acts on every outcome but
    ``CHOOSE``, which is returned to the caller with candidates. The caller
    then comes back with ``choice=NEW`` or ``choice=EXISTING`` and a
    ``selected_canteen``.
    """
    base_address_key = canonicalize_company_address(company)

    if choice == CanteenChoice.EXISTING and selected_canteen:
        target = await db.get(Canteen, selected_canteen, populate_existing=True)
        if target is None or (target.base_address_key or target.address_key) != base_address_key:
            raise CanteenNotFound(selected_canteen)
        await upsert_membership(db, selected_canteen, company, base_address_key)
        return Resolution(
            action=ResolutionAction.REUSE_EXISTING,
            base_address_key=base_address_key,
            canteen_key=selected_canteen,
        )

    attempts = settings.transaction_max_attempts

    if choice == CanteenChoice.NEW:
        name = (canteen_name or "").strip() or None
        # A sibling created concurrently can take the minted key; mint again
        for _ in range(attempts):
            new_key = await next_canteen_key(db, base_address_key)
            created = await upsert_membership(
                db, new_key, company, base_address_key, canteen_name=name, create_only=True
            )
            if created is not None:
                action = (
                    ResolutionAction.CREATE_FIRST
                    if new_key == base_address_key
                    else ResolutionAction.CREATE_ADDITIONAL
                )
                return Resolution(action=action, base_address_key=base_address_key, canteen_key=new_key)
        raise TransactionConflict(attempts)

    for _ in range(attempts):
        resolution = await resolve_canteen(db, company, base_address_key)
        if resolution.action == ResolutionAction.CREATE_FIRST:
            created = await upsert_membership(
                db, resolution.canteen_key, company, base_address_key, create_only=True
            )
            if created is None:
                # Another company created the first canteen meanwhile; resolve again
                continue
        elif resolution.action == ResolutionAction.REUSE_EXISTING:
            await upsert_membership(db, resolution.canteen_key, company, base_address_key)
        logger.info(
            "Resolved company %s at %s: %s", company.org_id, base_address_key, resolution.action.value
        )
        return resolution
    raise TransactionConflict(attempts)
