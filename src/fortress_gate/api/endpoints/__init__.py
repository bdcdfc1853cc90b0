"""API endpoint modules."""

from .auth import router as auth_router
from .proxy import router as proxy_router
from .system import router as system_router

__all__ = [
    "auth_router",
    "proxy_router",
    "system_router",
]
