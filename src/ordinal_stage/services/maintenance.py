"""Background maintenance: migration, duplicate repair and read-path sync.

These routines establish the ordering invariants. They are best effort:
failures are logged and reported, never raised to the triggering caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ordinal_stage.core.settings import settings
from ordinal_stage.models.migration_flag import MigrationFlag
from ordinal_stage.repositories.record_repo import OrderStore
from ordinal_stage.services.duplicates import DuplicateResolver
from ordinal_stage.services.migration_gate import (
    FLAG_DUPLICATES_FIXED,
    FLAG_ORDER_MIGRATED,
    KNOWN_FLAGS,
    MigrationGate,
)
from ordinal_stage.services.reconciler import Reconciler
from ordinal_stage.services.throttle import ThrottleService, get_throttle_service

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

_SYNC_WINDOW_KEY = "order_sync_complete"


@dataclass
class MaintenanceReport:
    """Outcome of one maintenance task."""

    task: str
    status: str
    details: dict[str, int] = field(default_factory=dict)


class MaintenanceService:
    """Entry point for the administrative and scheduled ordering routines."""

    def __init__(
        self,
        session: Session,
        *,
        store: OrderStore | None = None,
        throttle: ThrottleService | None = None,
    ) -> None:
        self.session = session
        self.store = store or OrderStore(session)
        self.gate = MigrationGate(session)
        self.throttle = throttle or get_throttle_service()

    def ensure_flags(self) -> None:
        """Create every known migration flag as not-done."""
        for name in KNOWN_FLAGS:
            self.gate.flags.ensure(name)
        self.session.commit()

    def migrate(self) -> MaintenanceReport:
        """Adopt legacy ordinals and reconcile, once."""

        def body() -> dict[str, int]:
            reconciler = Reconciler(self.store)
            adopted = reconciler.adopt_legacy()
            result = reconciler.reconcile()
            return {
                "adopted": adopted,
                "visited": result.visited,
                "primary_writes": result.primary_writes,
                "legacy_writes": result.legacy_writes,
                "repaired": len(result.repaired),
            }

        return self._run_gated(FLAG_ORDER_MIGRATED, body)

    def fix_duplicates(self) -> MaintenanceReport:
        """Run the duplicate sweep, once."""

        def body() -> dict[str, int]:
            return {"repaired": len(DuplicateResolver(self.store).resolve())}

        return self._run_gated(FLAG_DUPLICATES_FIXED, body)

    def sync(self, *, force: bool = False) -> MaintenanceReport:
        """Reconcile at most once per ``ORDER_SYNC_TTL_SECONDS``.

        Used from the public read path; ``force`` bypasses the time window.
        """
        task = "sync"
        if not force and not self.throttle.claim_window(
            _SYNC_WINDOW_KEY, settings.order_sync_ttl_seconds
        ):
            return MaintenanceReport(task=task, status=STATUS_SKIPPED)

        try:
            with self.session.begin_nested():
                result = Reconciler(self.store).reconcile()
            self.session.commit()
        except Exception:
            logger.exception("Order sync failed")
            self.session.rollback()
            self.throttle.release_window(_SYNC_WINDOW_KEY)
            return MaintenanceReport(task=task, status=STATUS_FAILED)

        if force:
            self.throttle.claim_window(_SYNC_WINDOW_KEY, settings.order_sync_ttl_seconds)
        return MaintenanceReport(
            task=task,
            status=STATUS_COMPLETED,
            details={
                "visited": result.visited,
                "primary_writes": result.primary_writes,
                "legacy_writes": result.legacy_writes,
                "repaired": len(result.repaired),
            },
        )

    def reset_flag(self, name: str) -> bool:
        """Clear a migration flag (operator action)."""
        return self.gate.reset(name)

    def list_flags(self) -> list[MigrationFlag]:
        """Create missing flags, then return all of them."""
        self.ensure_flags()
        return self.gate.flags.list_all()

    def _run_gated(self, name: str, body: Callable[[], dict[str, int]]) -> MaintenanceReport:
        try:
            outcome = self.gate.run_once(name, body)
        except Exception:
            logger.exception("Maintenance task %s failed", name)
            self.session.rollback()
            return MaintenanceReport(task=name, status=STATUS_FAILED)
        if not outcome.ran:
            return MaintenanceReport(task=name, status=STATUS_SKIPPED)
        return MaintenanceReport(task=name, status=STATUS_COMPLETED, details=outcome.result)
