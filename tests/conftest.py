"""Shared fixtures: a fresh SQLite database per test."""

import os

# Settings read the environment at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TRANSACTION_MAX_ATTEMPTS", "3")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from canteen_registry.db.init_db import init_db
from canteen_registry.schemas.company import Company, CompanyAddress


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'canteens.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_company():
    """Build a directory company, by default at Storgata 1, 0155 Oslo."""

    def _make(org_id: str, name: str | None = None, street: str = "Storgata 1",
              postal_code: str = "0155", city: str = "OSLO") -> Company:
        return Company(
            org_id=org_id,
            name=name or f"Company {org_id}",
            address=CompanyAddress(
                street=street,
                postal_code=postal_code,
                city=city,
                municipality="OSLO",
                municipality_number="0301",
            ),
        )

    return _make
