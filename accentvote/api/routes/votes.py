"""Vote Routes — submit, retract, and look up the caller's votes.

Invariants:
    - Every route identifies the caller through get_voter_id (header), never the body
    - Writes are rate limited per client address (get_submitter_key), not per voter key
    - Routes delegate to TabulationEngine; no business logic here
    - Domain errors surface through the global AccentVoteError handler
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, Response, status

from accentvote.api.dependencies import get_engine, get_submitter_key, get_voter_id
from accentvote.schemas.vote import (
    VoteCreate, VoteReceiptResponse, VoteResponse, VoterVoteResponse,
)
from accentvote.services.tabulation_engine import TabulationEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["votes"])


@router.post(
    "/votes", response_model=VoteReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_vote(
    body: VoteCreate,
    voter_id: str = Depends(get_voter_id),
    submitter_key: str | None = Depends(get_submitter_key),
    engine: TabulationEngine = Depends(get_engine),
):
    """Record one vote; the response carries the updated distributions."""
    receipt = await engine.submit_vote(
        item_id=body.item_id,
        category_id=body.category_id,
        voter_id=voter_id,
        region_id=body.region_id,
        age_group=body.age_group.value if body.age_group else None,
        submitter_key=submitter_key,
    )
    return VoteReceiptResponse.model_validate(receipt)


@router.delete("/votes/{vote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def retract_vote(
    vote_id: int = Path(ge=1),
    voter_id: str = Depends(get_voter_id),
    submitter_key: str | None = Depends(get_submitter_key),
    engine: TabulationEngine = Depends(get_engine),
):
    await engine.retract_vote(vote_id, voter_id, submitter_key=submitter_key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/votes/mine", response_model=list[VoteResponse])
async def my_votes(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    voter_id: str = Depends(get_voter_id),
    engine: TabulationEngine = Depends(get_engine),
):
    """Caller's vote history, newest first."""
    votes = await engine.voter_history(voter_id, limit, offset)
    return [VoteResponse.model_validate(v) for v in votes]


@router.get("/items/{item_id}/vote", response_model=VoterVoteResponse)
async def my_vote_on_item(
    item_id: int = Path(ge=1),
    voter_id: str = Depends(get_voter_id),
    engine: TabulationEngine = Depends(get_engine),
):
    vote = await engine.get_voter_vote(item_id, voter_id)
    return VoterVoteResponse(
        has_voted=vote is not None,
        vote=VoteResponse.model_validate(vote) if vote else None,
    )
