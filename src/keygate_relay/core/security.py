"""Callback token signing and admin token checks."""
from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from keygate_relay.core.settings import Settings


class CallbackAuthError(RuntimeError):
    """Raised when a completion notification carries an unusable token."""


def create_callback_token(
    settings: Settings,
    user_id: str,
    script_id: str,
    key_index: int,
) -> str:
    """Sign a token binding a callback URL to one unlock key.

    Args:
        settings: Active settings; ``callback_secret`` must be set.
        user_id: Opaque user identifier.
        script_id: Opaque script identifier.
        key_index: Normalized key index.

    Returns:
        Encoded JWT carrying the triple and an expiry.
    """
    if not settings.callback_secret:
        raise CallbackAuthError("Callback signing is not configured")
    expire = datetime.now(UTC) + timedelta(minutes=settings.callback_token_ttl_minutes)
    claims: dict[str, object] = {
        "sub": user_id,
        "scr": script_id,
        "key": key_index,
        "exp": expire,
    }
    encoded: str = jwt.encode(
        claims,
        settings.callback_secret,
        algorithm=settings.jwt_algorithm,
    )
    return encoded


def verify_callback_token(
    settings: Settings,
    token: str | None,
    user_id: str,
    script_id: str,
    key_index: int,
) -> None:
    """Check that ``token`` was issued for exactly this triple.

    Raises:
        CallbackAuthError: If the token is missing, invalid, expired or bound
            to a different key.
    """
    if not settings.callback_secret:
        return
    if not token:
        raise CallbackAuthError("Missing callback token")
    try:
        payload = jwt.decode(
            token,
            settings.callback_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise CallbackAuthError("Invalid callback token") from err

    if (
        payload.get("sub") != user_id
        or payload.get("scr") != script_id
        or payload.get("key") != key_index
    ):
        raise CallbackAuthError("Callback token does not match notification")


def admin_token_matches(settings: Settings, presented: str | None) -> bool:
    """Return True if ``presented`` equals the configured admin token."""
    if not settings.admin_token or not presented:
        return False
    return secrets.compare_digest(presented.encode(), settings.admin_token.encode())
