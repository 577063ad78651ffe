"""Tests for callback token signing and admin token checks."""

from __future__ import annotations

import pytest

from keygate_relay.core.security import (
    CallbackAuthError,
    admin_token_matches,
    create_callback_token,
    verify_callback_token,
)
from keygate_relay.core.settings import Settings


@pytest.fixture()
def signing_settings() -> Settings:
    return Settings(CALLBACK_SECRET="secret", CALLBACK_TOKEN_TTL_MINUTES=5)


def test_token_round_trip(signing_settings: Settings) -> None:
    token = create_callback_token(signing_settings, "u1", "s1", 3)

    verify_callback_token(signing_settings, token, "u1", "s1", 3)


def test_token_bound_to_triple(signing_settings: Settings) -> None:
    token = create_callback_token(signing_settings, "u1", "s1", 3)

    with pytest.raises(CallbackAuthError):
        verify_callback_token(signing_settings, token, "u1", "s1", 4)
    with pytest.raises(CallbackAuthError):
        verify_callback_token(signing_settings, token, "u2", "s1", 3)


def test_missing_or_forged_token_rejected(signing_settings: Settings) -> None:
    with pytest.raises(CallbackAuthError):
        verify_callback_token(signing_settings, None, "u1", "s1", 3)

    other = Settings(CALLBACK_SECRET="another-secret")
    forged = create_callback_token(other, "u1", "s1", 3)
    with pytest.raises(CallbackAuthError):
        verify_callback_token(signing_settings, forged, "u1", "s1", 3)


def test_expired_token_rejected() -> None:
    expired_settings = Settings(CALLBACK_SECRET="secret", CALLBACK_TOKEN_TTL_MINUTES=-1)
    token = create_callback_token(expired_settings, "u1", "s1", 0)

    with pytest.raises(CallbackAuthError):
        verify_callback_token(expired_settings, token, "u1", "s1", 0)


def test_verification_skipped_without_secret() -> None:
    verify_callback_token(Settings(CALLBACK_SECRET=None), None, "u1", "s1", 0)


def test_signing_requires_secret() -> None:
    with pytest.raises(CallbackAuthError):
        create_callback_token(Settings(CALLBACK_SECRET=None), "u1", "s1", 0)


def test_admin_token_matches() -> None:
    settings = Settings(ADMIN_TOKEN="admin")

    assert admin_token_matches(settings, "admin") is True
    assert admin_token_matches(settings, "nope") is False
    assert admin_token_matches(settings, None) is False
    assert admin_token_matches(Settings(ADMIN_TOKEN=None), "admin") is False
