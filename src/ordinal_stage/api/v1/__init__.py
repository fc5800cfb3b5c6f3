"""Version 1 API endpoints."""

from .endpoints import admin_router, records_router, system_router

__all__ = [
    "admin_router",
    "records_router",
    "system_router",
]
