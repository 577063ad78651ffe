"""Link issuing endpoint used by the key-gate frontend."""

from fastapi import APIRouter, status

from keygate_relay.api.v1.dependencies import LinkIssuerDep
from keygate_relay.schemas.unlock import LinkCreate, LinkResponse, PendingOut

router = APIRouter(prefix="/links", tags=["links"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=LinkResponse)
async def issue_link(payload: LinkCreate, issuer: LinkIssuerDep) -> LinkResponse:
    """Issue an ad link for one key and register it as pending."""
    link = issuer.issue(payload.user_id, payload.script_id, payload.key_index)
    return LinkResponse(
        ad_url=link.ad_url,
        callback_url=link.callback_url,
        pending=PendingOut.model_validate(link.pending),
    )
