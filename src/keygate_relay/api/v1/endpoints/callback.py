"""Completion notifications from the ad network."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi import APIRouter, Body, Request, status
from fastapi.responses import RedirectResponse

from keygate_relay.api.v1.dependencies import SettingsDep, TrackerDep
from keygate_relay.core.security import CallbackAuthError, verify_callback_token
from keygate_relay.core.settings import Settings
from keygate_relay.schemas.unlock import CallbackResult
from keygate_relay.services.errors import StorageError, ValidationError
from keygate_relay.services.normalize import extract_token, normalize_notification
from keygate_relay.services.tracker import CompletionOutcome, CompletionTracker, validate_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/callback", tags=["callback"])


def _complete(
    tracker: CompletionTracker,
    settings: Settings,
    params: Mapping[str, Any],
) -> CompletionOutcome:
    fields = normalize_notification(params)
    key = validate_key(fields["user_id"], fields["script_id"], fields["key_index"])
    verify_callback_token(
        settings,
        extract_token(params),
        key.user_id,
        key.script_id,
        key.key_index,
    )
    return tracker.apply_completion(key.user_id, key.script_id, key.key_index)


def _with_query(url: str, extra: dict[str, str]) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend(extra.items())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def _result(outcome: CompletionOutcome) -> CallbackResult:
    return CallbackResult(
        user_id=outcome.key.user_id,
        script_id=outcome.key.script_id,
        key_index=outcome.key.key_index,
        already_completed=outcome.already_completed,
    )


@router.get("", response_model=None)
async def receive_callback(
    request: Request,
    tracker: TrackerDep,
    settings: SettingsDep,
) -> CallbackResult | RedirectResponse:
    """Apply a completion delivered through a redirect or server ping.

    When a success redirect is configured the user is sent back to the
    frontend with ``completed=1`` or an ``error`` flag; otherwise the outcome
    is returned as JSON and errors use the shared exception handlers.
    """
    params = dict(request.query_params)
    redirect_to = settings.success_redirect_url
    if not redirect_to:
        return _result(_complete(tracker, settings, params))

    try:
        outcome = _complete(tracker, settings, params)
    except ValidationError as exc:
        logger.warning("Rejected callback", extra={"error": str(exc)})
        flags = {"error": "missing_data"}
    except CallbackAuthError as exc:
        logger.warning("Rejected callback", extra={"error": str(exc)})
        flags = {"error": "unauthorized"}
    except StorageError:
        logger.exception("Callback could not be recorded")
        flags = {"error": "storage"}
    else:
        flags = {"completed": "1"}
        if outcome.already_completed:
            flags["already"] = "1"
    return RedirectResponse(
        _with_query(redirect_to, flags),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.post("", response_model=CallbackResult)
async def receive_callback_post(
    tracker: TrackerDep,
    settings: SettingsDep,
    payload: dict[str, Any] = Body(...),
) -> CallbackResult:
    """Apply a completion posted as JSON by the ad network or frontend."""
    return _result(_complete(tracker, settings, payload))
