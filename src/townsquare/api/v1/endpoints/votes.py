"""Vote endpoints for posts and comments."""

from typing import Annotated

from fastapi import APIRouter, Depends

from townsquare.schemas.vote import VoteCast, VoteTallyResponse
from townsquare.services.votes import VoteTally, VoteTarget, cast_vote, retract_vote, tally

from ..dependencies import CurrentActorDep, StoreDep

router = APIRouter(prefix="/votes", tags=["votes"])


def get_target(target_type: str, target_id: int) -> VoteTarget:
    """Build the tagged vote target from the path; unknown types fail validation."""
    return VoteTarget(target_type, target_id)


TargetDep = Annotated[VoteTarget, Depends(get_target)]


def _to_response(result: VoteTally) -> VoteTallyResponse:
    return VoteTallyResponse(
        target_type=result.target.kind,
        target_id=result.target.id,
        upvotes=result.upvotes,
        downvotes=result.downvotes,
        score=result.score,
        my_vote=result.my_vote,
    )


@router.put("/{target_type}/{target_id}", response_model=VoteTallyResponse)
async def put_vote(
    vote_data: VoteCast,
    target: TargetDep,
    actor: CurrentActorDep,
    store: StoreDep,
) -> VoteTallyResponse:
    """Cast or change the caller's vote; repeating the same vote changes nothing."""
    return _to_response(cast_vote(store, actor, target, vote_data.type))


@router.delete("/{target_type}/{target_id}", response_model=VoteTallyResponse)
async def delete_vote(
    target: TargetDep,
    actor: CurrentActorDep,
    store: StoreDep,
) -> VoteTallyResponse:
    """Retract the caller's vote."""
    return _to_response(retract_vote(store, actor, target))


@router.get("/{target_type}/{target_id}/mine", response_model=VoteTallyResponse)
async def get_my_vote(
    target: TargetDep,
    actor: CurrentActorDep,
    store: StoreDep,
) -> VoteTallyResponse:
    return _to_response(tally(store, actor, target))
