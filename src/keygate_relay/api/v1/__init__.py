# src/keygate_relay/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    callback_router,
    links_router,
    stats_router,
    status_router,
    system_router,
)

__all__ = [
    "callback_router",
    "links_router",
    "stats_router",
    "status_router",
    "system_router",
]
