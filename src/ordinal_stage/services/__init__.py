# src/ordinal_stage/services/__init__.py
"""Business logic services for the Ordinal Stage service."""

from .duplicates import DuplicateResolver
from .maintenance import MaintenanceService
from .migration_gate import MigrationGate
from .reconciler import Reconciler
from .reorder import ReorderService
from .throttle import ThrottleService

__all__ = [
    "DuplicateResolver",
    "MaintenanceService",
    "MigrationGate",
    "Reconciler",
    "ReorderService",
    "ThrottleService",
]
