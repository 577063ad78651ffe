# src/keygate_relay/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .callback import router as callback_router
from .links import router as links_router
from .stats import router as stats_router
from .status import router as status_router
from .system import router as system_router

__all__ = [
    "callback_router",
    "links_router",
    "stats_router",
    "status_router",
    "system_router",
]
