"""Merge the legacy ordinal into the primary ordinal."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ordinal_stage.repositories.record_repo import OrderStore
from ordinal_stage.services.duplicates import DuplicateResolver, Reassignment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedWrite:
    """Target values for one record; ``None`` means leave the field alone."""

    record_id: int
    primary: int | None = None
    legacy: int | None = None


@dataclass
class ReconcileResult:
    """Summary of a reconciliation pass."""

    visited: int = 0
    primary_writes: int = 0
    legacy_writes: int = 0
    adopted: int = 0
    repaired: list[Reassignment] = field(default_factory=list)

    @property
    def mutated(self) -> bool:
        """Return True if the pass wrote anything."""
        return bool(self.primary_writes or self.legacy_writes or self.adopted or self.repaired)


def plan_reconciliation(rows: Iterable[tuple[int, int, int | None]]) -> list[PlannedWrite]:
    """Plan writes for ``(record_id, menu_order, legacy_order)`` rows.

    Rows are visited in id order. A legacy value that differs from the
    primary one is adopted, moving upward while an earlier record already
    claimed it. Records with neither value are appended after the highest
    claimed value and get a matching legacy value. Records with only a
    primary value are kept as they are.
    """
    claimed: set[int] = set()
    highest = 0
    writes: list[PlannedWrite] = []

    for record_id, primary, legacy in sorted(rows, key=lambda row: row[0]):
        if legacy is not None and legacy != primary:
            value = legacy
            while value in claimed:
                value += 1
            target = value if value != primary else None
            mirrored = value if value != legacy else None
            if target is not None or mirrored is not None:
                writes.append(PlannedWrite(record_id, primary=target, legacy=mirrored))
        elif legacy is None and primary == 0:
            value = highest + 1
            while value in claimed:
                value += 1
            writes.append(PlannedWrite(record_id, primary=value, legacy=value))
        else:
            value = primary
        claimed.add(value)
        highest = max(highest, value)

    return writes


class Reconciler:
    """Bring ``menu_order`` and ``legacy_order`` into agreement."""

    def __init__(self, store: OrderStore, resolver: DuplicateResolver | None = None) -> None:
        self.store = store
        self.resolver = resolver or DuplicateResolver(store)

    def adopt_legacy(self) -> int:
        """Copy positive legacy values onto records that have no primary value.

        This is the one-time migration of the legacy attribute. Records are
        visited in ascending legacy order.
        """
        candidates = [
            record
            for record in self.store.list(lock=True)
            if record.legacy_order is not None
            and record.legacy_order > 0
            and record.menu_order == 0
        ]
        candidates.sort(key=lambda record: (record.legacy_order, record.id))

        adopted = 0
        for record in candidates:
            if self.store.set_primary_ordinal(record.id, record.legacy_order):
                adopted += 1
        if adopted:
            logger.info("Adopted %d legacy ordinals", adopted)
        return adopted

    def reconcile(self) -> ReconcileResult:
        """Run one reconciliation pass followed by the duplicate sweep."""
        records = self.store.list(lock=True)
        result = ReconcileResult(visited=len(records))
        plan = plan_reconciliation(
            (record.id, record.menu_order, record.legacy_order) for record in records
        )

        for write in plan:
            if write.primary is not None:
                if not self.store.set_primary_ordinal(write.record_id, write.primary):
                    # Deleted or unpublished since it was listed; nothing to fix.
                    logger.debug("Skipping missing record %s", write.record_id)
                    continue
                result.primary_writes += 1
            if write.legacy is not None and self.store.set_legacy_ordinal(
                write.record_id, write.legacy
            ):
                result.legacy_writes += 1

        result.repaired = self.resolver.resolve()
        logger.debug(
            "Reconciled %d records (%d primary, %d legacy writes, %d repaired)",
            result.visited,
            result.primary_writes,
            result.legacy_writes,
            len(result.repaired),
        )
        return result
