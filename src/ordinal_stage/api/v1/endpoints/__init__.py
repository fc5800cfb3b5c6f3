"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .records import router as records_router
from .system import router as system_router

__all__ = [
    "admin_router",
    "records_router",
    "system_router",
]
