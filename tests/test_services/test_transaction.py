"""
Tests for the bounded-retry transaction runner.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from canteen_registry.core.exceptions import CanteenNotFound, TransactionConflict
from canteen_registry.db.transaction import run_in_transaction
from canteen_registry.models.canteen import Canteen
from canteen_registry.schemas.review import ReviewSubmission
from canteen_registry.services import queries
from canteen_registry.services.canteens import register_company
from canteen_registry.services.reviews import submit_review

KEY = "storgata-1_0155_oslo"


async def test_returns_work_result(db):
    async def work(session):
        return 42

    assert await run_in_transaction(db, work) == 42


async def test_conflict_retried_then_succeeds(db):
    calls = []

    async def work(session):
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("version mismatch")
        return "ok"

    assert await run_in_transaction(db, work, attempts=3) == "ok"
    assert len(calls) == 3


async def test_conflict_gives_up_after_bounded_attempts(db):
    calls = []

    async def work(session):
        calls.append(1)
        raise StaleDataError("version mismatch")

    with pytest.raises(TransactionConflict) as exc_info:
        await run_in_transaction(db, work, attempts=4)
    assert exc_info.value.attempts == 4
    assert len(calls) == 4


async def test_other_errors_propagate_without_retry(db):
    calls = []

    async def work(session):
        calls.append(1)
        raise CanteenNotFound("x")

    with pytest.raises(CanteenNotFound):
        await run_in_transaction(db, work)
    assert len(calls) == 1


def _key_collision():
    return IntegrityError("INSERT INTO reviews", {}, Exception("UNIQUE constraint failed: reviews.id"))


async def test_integrity_error_propagates_by_default(db):
    calls = []

    async def work(session):
        calls.append(1)
        raise _key_collision()

    with pytest.raises(IntegrityError):
        await run_in_transaction(db, work)
    assert len(calls) == 1


async def test_key_collision_retried_when_enabled(db):
    calls = []

    async def work(session):
        calls.append(1)
        if len(calls) == 1:
            raise _key_collision()
        return "ok"

    assert await run_in_transaction(db, work, retry_key_conflicts=True) == "ok"
    assert len(calls) == 2


async def test_concurrent_commit_is_not_lost(session_factory, make_company):
    """A write that lost the version race is replayed on top of the winner's state."""
    async with session_factory() as setup:
        await register_company(setup, make_company("111"))

    calls = 0
    async with session_factory() as mine, session_factory() as theirs:

        async def work(session):
            nonlocal calls
            calls += 1
            canteen = await session.get(Canteen, KEY, populate_existing=True)
            seen = canteen.total_reviews
            if calls == 1:
                # Another writer commits between our read and our write
                other = await theirs.get(Canteen, KEY)
                other.total_reviews = other.total_reviews + 10
                await theirs.commit()
            canteen.total_reviews = seen + 1
            await session.flush()
            return seen

        seen = await run_in_transaction(mine, work)

    assert calls == 2
    assert seen == 10
    async with session_factory() as check:
        assert (await queries.get_canteen(check, KEY)).total_reviews == 11


async def test_reviews_from_separate_sessions_all_counted(session_factory, make_company):
    async with session_factory() as setup:
        await register_company(setup, make_company("111"))

    for i, rating in enumerate([5, 3, 4]):
        async with session_factory() as session:
            await submit_review(session, KEY, f"client-{i}", ReviewSubmission(rating=rating))

    async with session_factory() as check:
        canteen = await queries.get_canteen(check, KEY)
    assert canteen.total_reviews == 3
    assert canteen.average_rating == 4.0
