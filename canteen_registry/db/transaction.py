"""Bounded-retry transaction runner.

Canteen rows carry a version counter; an UPDATE racing a concurrent commit
matches no rows and raises ``StaleDataError``. Callers that insert rows under
deterministic keys can also opt into retrying ``IntegrityError``, which is how
a concurrent insert of the same primary key surfaces. Retries start from a
fresh read.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from canteen_registry.core.config import settings
from canteen_registry.core.exceptions import TransactionConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")

VERSION_CONFLICTS = (StaleDataError,)
KEY_CONFLICTS = (StaleDataError, IntegrityError)


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[AsyncSession], Awaitable[T]],
    attempts: int | None = None,
    retry_key_conflicts: bool = False,
) -> T:
    """Run ``work`` and commit, retrying on write conflicts.

    ``work`` must read everything it depends on through ``db`` so a retry sees
    the state left by whichever transaction won. Integrity errors propagate
    unless ``retry_key_conflicts`` is set.
    """
    attempts = attempts or settings.transaction_max_attempts
    conflicts = KEY_CONFLICTS if retry_key_conflicts else VERSION_CONFLICTS
    for attempt in range(1, attempts + 1):
        try:
            result = await work(db)
            await db.commit()
            return result
        except conflicts as exc:
            await db.rollback()
            logger.warning(
                "Transaction conflict (attempt %d/%d): %s",
                attempt,
                attempts,
                exc.__class__.__name__,
            )
        except Exception:
            await db.rollback()
            raise
    raise TransactionConflict(attempts)
