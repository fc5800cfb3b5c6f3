"""Data access layer for records and migration flags."""

from .flag_repo import MigrationFlagRepository
from .record_repo import OrderStore

__all__ = ["MigrationFlagRepository", "OrderStore"]
