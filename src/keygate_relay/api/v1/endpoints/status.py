"""Completion status lookups for the key-gate frontend."""

from fastapi import APIRouter

from keygate_relay.api.v1.dependencies import TrackerDep
from keygate_relay.schemas.unlock import StatusResponse

router = APIRouter(prefix="/status", tags=["status"])


@router.get("/{user_id}/{script_id}", response_model=StatusResponse)
async def get_status(user_id: str, script_id: str, tracker: TrackerDep) -> StatusResponse:
    """Return the completed key indexes; unknown ids yield an empty list."""
    completed = tracker.get_status(user_id, script_id)
    return StatusResponse(completed_keys=sorted(completed))
