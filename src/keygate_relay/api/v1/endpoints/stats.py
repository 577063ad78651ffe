"""Operator statistics over the completion state."""

from fastapi import APIRouter, Depends

from keygate_relay.api.v1.dependencies import TrackerDep, require_admin
from keygate_relay.schemas.unlock import StatsResponse

router = APIRouter(prefix="/stats", tags=["stats"], dependencies=[Depends(require_admin)])


@router.get("", response_model=StatsResponse)
async def get_stats(tracker: TrackerDep) -> StatsResponse:
    """Return aggregate counts plus the raw pending/completed/users views.

    Returns:
        Counters computed by scanning current state, and the logical
        state document
    """
    stats = tracker.get_stats()
    views = tracker.snapshot()
    return StatsResponse(
        total_users=stats.total_users,
        total_completions=stats.total_completions,
        pending_count=stats.pending_count,
        pending=views["pending"],
        completed=views["completed"],
        users=views["users"],
    )
