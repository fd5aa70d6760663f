"""Item Locks — serialize writers of one item, inside the process and across processes.

Invariants:
    - At most one tabulation transaction per item runs at a time in this process
    - Locks are created lazily and reused; the same item always maps to the same lock
    - lock_item_in_database() runs first in every tabulation transaction, before
      any ledger or aggregate read, and holds until commit/rollback

Design Decisions:
    - The asyncio lock queues writers locally so they do not pile up on the
      database lock; the database lock is what serializes worker processes
    - Row locks (FOR UPDATE) alone cannot do that: a scope with no aggregate rows
      yet has nothing to lock, so two first votes would both see an empty scope
    - PostgreSQL: transaction-scoped advisory lock on (namespace, item_id)
    - SQLite: no-op; the database takes one write lock for all writers
    - Keyed by item, not by scope: national and region scopes of one item are
      written in the same transaction
"""

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from accentvote.core.domain_types import ItemId

logger = logging.getLogger(__name__)

# first key of the two-int advisory lock, keeps item ids apart from other lock users
ADVISORY_LOCK_NAMESPACE = 0x4156

_ADVISORY_LOCK_SQL = text("SELECT pg_advisory_xact_lock(:namespace, :item_id)")


class ItemLockRegistry:
    """Lazily created asyncio.Lock per item id."""

    def __init__(self):
        self._locks: dict[ItemId, asyncio.Lock] = {}

    def for_item(self, item_id: int) -> asyncio.Lock:
        lock = self._locks.get(ItemId(item_id))
        if lock is None:
            lock = self._locks[ItemId(item_id)] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._locks)


async def lock_item_in_database(db: AsyncSession, item_id: int) -> bool:
    """Block until this transaction owns item_id's database lock.

    Returns False when the dialect needs no explicit lock.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        await db.execute(
            _ADVISORY_LOCK_SQL,
            {"namespace": ADVISORY_LOCK_NAMESPACE, "item_id": item_id},
        )
        return True
    if dialect != "sqlite":
        logger.warning(
            "No item lock for dialect %s; relying on row locks", dialect,
            extra={"item_id": item_id},
        )
    return False
