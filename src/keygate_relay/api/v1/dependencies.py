"""Shared API dependencies for the relay endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from keygate_relay.core.security import admin_token_matches
from keygate_relay.core.settings import Settings
from keygate_relay.services.links import LinkIssuer
from keygate_relay.services.tracker import CompletionTracker

# Stats access uses a static bearer token; missing headers are handled below.
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


def get_tracker(request: Request) -> CompletionTracker:
    """Return the tracker bound to the application's state store."""
    tracker: CompletionTracker | None = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="State store is not available",
        )
    return tracker


SettingsDep = Annotated[Settings, Depends(get_settings)]
TrackerDep = Annotated[CompletionTracker, Depends(get_tracker)]


def get_link_issuer(tracker: TrackerDep, settings: SettingsDep) -> LinkIssuer:
    """Build a link issuer for the current request."""
    return LinkIssuer(tracker, settings)


LinkIssuerDep = Annotated[LinkIssuer, Depends(get_link_issuer)]


def require_admin(
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> None:
    """Reject requests that do not present the configured admin token.

    Raises:
        HTTPException: 403 when the token is absent, wrong, or not configured.
    """
    presented = credentials.credentials if credentials is not None else None
    if not admin_token_matches(settings, presented):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized",
        )
