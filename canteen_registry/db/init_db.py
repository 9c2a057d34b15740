"""Database initialization utilities."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from canteen_registry import models  # noqa: F401
from canteen_registry.db.base import Base
from canteen_registry.db.session import engine as default_engine
from canteen_registry.services.migrations import backfill_base_address_keys


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create tables that do not exist yet, then backfill legacy canteen rows."""
    engine = engine or default_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSession(engine, expire_on_commit=False, autoflush=False) as session:
        await backfill_base_address_keys(session)
