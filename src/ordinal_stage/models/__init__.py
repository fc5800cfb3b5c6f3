# src/ordinal_stage/models/__init__.py
"""SQLAlchemy models for the Ordinal Stage service."""

from .migration_flag import MigrationFlag
from .record import Record

__all__ = [
    "MigrationFlag",
    "Record",
]
