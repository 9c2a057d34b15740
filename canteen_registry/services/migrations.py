"""One-off data migrations."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from canteen_registry.db.transaction import run_in_transaction
from canteen_registry.models.canteen import Canteen

logger = logging.getLogger(__name__)


async def backfill_base_address_keys(db: AsyncSession) -> int:
    """Give legacy canteens without ``base_address_key`` their own key as base.

    Rows created before multi-canteen addresses existed were always the first
    canteen at their address, so their base key equals their address key.
    Returns the number of rows updated.
    """

    async def work(session: AsyncSession) -> int:
        stmt = (
            select(Canteen)
            .where(Canteen.base_address_key.is_(None))
            .execution_options(populate_existing=True)
        )
        legacy = (await session.execute(stmt)).scalars().all()
        for canteen in legacy:
            canteen.base_address_key = canteen.address_key
        await session.flush()
        return len(legacy)

    updated = await run_in_transaction(db, work)
    logger.info("Backfilled base_address_key on %d canteen(s)", updated)
    return updated
