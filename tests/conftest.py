# tests/conftest.py
from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from keygate_relay.core.settings import Settings
from keygate_relay.db.session import build_engine
from keygate_relay.main import create_app
from keygate_relay.services.state_store import StateStore
from keygate_relay.services.tracker import CompletionTracker

TEST_DB_URL = "sqlite://"
ADMIN_TOKEN = "test-admin-token"
CALLBACK_SECRET = "test-callback-secret"


@pytest.fixture()
def store() -> Iterator[StateStore]:
    """Open a fresh in-memory store for each test."""
    engine = build_engine(TEST_DB_URL)
    state_store = StateStore(TEST_DB_URL, engine=engine)
    state_store.open()
    try:
        yield state_store
    finally:
        state_store.close()
        engine.dispose()


@pytest.fixture()
def tracker(store: StateStore) -> CompletionTracker:
    return CompletionTracker(store)


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with stats enabled and callback auth disabled."""
    return Settings(
        DATABASE_URL=TEST_DB_URL,
        ADMIN_TOKEN=ADMIN_TOKEN,
        PUBLIC_BASE_URL="http://relay.test",
        AD_NETWORK_URL=None,
        SUCCESS_REDIRECT_URL=None,
        CALLBACK_SECRET=None,
    )


@pytest.fixture()
def app(test_settings: Settings, store: StateStore) -> FastAPI:
    return create_app(test_settings, store=store)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Return authorization headers for the stats endpoint."""
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture()
def make_client(store: StateStore, test_settings: Settings):
    """Build a client for settings derived from the defaults."""
    clients: list[TestClient] = []

    def _make(**overrides: object) -> TestClient:
        settings = test_settings.model_copy(update=overrides)
        test_client = TestClient(create_app(settings, store=store), base_url="http://test")
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    try:
        yield _make
    finally:
        for test_client in clients:
            test_client.__exit__(None, None, None)
