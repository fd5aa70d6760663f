"""Vote Ledger — durable log of votes with one-vote-per-(voter, item) enforcement.

Invariants:
    - submit() never leaves two rows for the same (voter_id, item_id):
      checked by a FOR UPDATE read, then by the uq_votes_voter_item constraint on flush
    - retract() checks existence, ownership, then the retraction window, in that order
    - Mutating methods run on the caller's session; the caller owns commit/rollback
    - Returned values are VoteRecord snapshots, never live ORM objects

Design Decisions:
    - Stateless apart from the injected clock: one instance shared by all requests
    - IntegrityError on flush is translated to DuplicateVoteError (lost race
      against another process); the failed transaction is rolled back by the caller
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accentvote.core.domain_types import (
    AgeGroup, CategoryId, ItemId, RegionId, ResolvedCategory, VoteId, VoteRecord,
    VoterId,
)
from accentvote.core.errors import (
    DuplicateVoteError, ErrorContext, ForbiddenError, NotFoundError,
    RetractionWindowExpired,
)
from accentvote.core.repository_protocols import Clock
from accentvote.core.vote_rules import RETRACTION_WINDOW_HOURS, retraction_window_open
from accentvote.models.vote import Vote

logger = logging.getLogger(__name__)


def to_record(vote: Vote) -> VoteRecord:
    return VoteRecord(
        id=VoteId(vote.id),
        item_id=ItemId(vote.item_id),
        category_id=CategoryId(vote.category_id),
        voter_id=VoterId(vote.voter_id),
        region_id=RegionId(vote.region_id) if vote.region_id else None,
        age_group=AgeGroup(vote.age_group) if vote.age_group else None,
        submitted_at=vote.submitted_at,
    )


class VoteLedger:
    """Vote persistence and lifecycle rules."""

    def __init__(
        self, clock: Clock, retraction_window_hours: int = RETRACTION_WINDOW_HOURS,
    ):
        self._clock = clock
        self._window_hours = retraction_window_hours

    async def submit(
        self,
        db: AsyncSession,
        resolved: ResolvedCategory,
        voter_id: str,
        region_id: str | None = None,
        age_group: AgeGroup | None = None,
        context: ErrorContext | None = None,
    ) -> VoteRecord:
        """Insert a vote. Raises DuplicateVoteError if the voter already voted on the item."""
        existing = await db.execute(
            select(Vote.id)
            .where(Vote.item_id == resolved.item_id)
            .where(Vote.voter_id == voter_id)
            .with_for_update()
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateVoteError(resolved.item_id, context)

        vote = Vote(
            item_id=resolved.item_id,
            category_id=resolved.category_id,
            voter_id=voter_id,
            region_id=region_id,
            age_group=age_group.value if age_group else None,
            submitted_at=self._clock.now(),
        )
        db.add(vote)
        try:
            await db.flush()
        except IntegrityError as e:
            raise DuplicateVoteError(resolved.item_id, context) from e
        return to_record(vote)

    async def retract(
        self,
        db: AsyncSession,
        vote_id: int,
        voter_id: str,
        context: ErrorContext | None = None,
    ) -> VoteRecord:
        """Delete a vote owned by voter_id inside the retraction window. Returns the removed vote."""
        result = await db.execute(
            select(Vote).where(Vote.id == vote_id).with_for_update(),
        )
        vote = result.scalar_one_or_none()
        if vote is None:
            raise NotFoundError("Vote", vote_id, context)
        if vote.voter_id != voter_id:
            raise ForbiddenError(vote_id, context)
        if not retraction_window_open(
            vote.submitted_at, self._clock.now(), self._window_hours,
        ):
            raise RetractionWindowExpired(vote_id, self._window_hours, context)

        record = to_record(vote)
        await db.delete(vote)
        await db.flush()
        return record

    async def get(self, db: AsyncSession, vote_id: int) -> VoteRecord | None:
        vote = await db.get(Vote, vote_id)
        return to_record(vote) if vote else None

    async def find_by_voter(
        self, db: AsyncSession, item_id: int, voter_id: str,
    ) -> VoteRecord | None:
        """Current vote of voter_id on item_id, if any. Side-effect free."""
        result = await db.execute(
            select(Vote)
            .where(Vote.item_id == item_id)
            .where(Vote.voter_id == voter_id)
        )
        vote = result.scalar_one_or_none()
        return to_record(vote) if vote else None

    async def history(
        self, db: AsyncSession, voter_id: str, limit: int = 20, offset: int = 0,
    ) -> list[VoteRecord]:
        """Voter's votes, newest first."""
        result = await db.execute(
            select(Vote)
            .where(Vote.voter_id == voter_id)
            .order_by(Vote.submitted_at.desc(), Vote.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [to_record(v) for v in result.scalars().all()]

    async def count_for_item(self, db: AsyncSession, item_id: int) -> int:
        result = await db.execute(
            select(func.count(Vote.id)).where(Vote.item_id == item_id),
        )
        return int(result.scalar_one())

    async def count_by_region(
        self, db: AsyncSession, item_id: int,
    ) -> dict[RegionId, int]:
        result = await db.execute(
            select(Vote.region_id, func.count(Vote.id))
            .where(Vote.item_id == item_id)
            .where(Vote.region_id.is_not(None))
            .group_by(Vote.region_id)
            .order_by(Vote.region_id)
        )
        return {RegionId(region): int(count) for region, count in result.all()}

    async def count_by_age_group(
        self, db: AsyncSession, item_id: int,
    ) -> dict[AgeGroup, int]:
        result = await db.execute(
            select(Vote.age_group, func.count(Vote.id))
            .where(Vote.item_id == item_id)
            .where(Vote.age_group.is_not(None))
            .group_by(Vote.age_group)
        )
        counts = {AgeGroup(age): int(count) for age, count in result.all()}
        return {age: counts[age] for age in AgeGroup if age in counts}
