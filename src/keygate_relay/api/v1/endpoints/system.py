"""Health and service information endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from keygate_relay.api.v1.dependencies import SettingsDep, TrackerDep
from keygate_relay.services.errors import StorageError

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def get_system_health(tracker: TrackerDep, settings: SettingsDep) -> dict[str, object]:
    """Report whether the state store answers queries.

    Returns:
        Dictionary with overall status, component health and version info
    """
    try:
        with tracker.store.read() as session:
            session.execute(text("SELECT 1"))
        db_status = "healthy"
    except (StorageError, SQLAlchemyError) as e:
        db_status = f"unhealthy: {e}"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": int(time.time()),
        "components": {"database": db_status},
        "version": settings.app_version,
    }


@router.get("/config")
async def get_public_config(settings: SettingsDep) -> dict[str, object]:
    """Return a sanitized snapshot of runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "callback": {
            "url": settings.callback_url_base,
            "auth_enabled": settings.callback_auth_enabled,
            "token_ttl_minutes": settings.callback_token_ttl_minutes,
            "redirects": bool(settings.success_redirect_url),
        },
        "stats_enabled": bool(settings.admin_token),
    }
