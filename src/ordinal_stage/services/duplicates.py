"""Duplicate ordinal repair.

The sweep visits records in ascending ``menu_order`` (ties broken by id) and
moves every record whose value was already taken to one past the highest
value seen so far. Records that did not collide keep their value, and moved
records only ever move upward, so relative order is preserved. Gaps are
allowed; only uniqueness and order are guaranteed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ordinal_stage.repositories.record_repo import OrderStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reassignment:
    """A record whose ordinal was moved to resolve a collision."""

    record_id: int
    old: int
    new: int


def plan_resolution(ordinals: Iterable[tuple[int, int]]) -> list[Reassignment]:
    """Return the reassignments needed to make ``(record_id, ordinal)`` pairs unique."""
    ordered = sorted(ordinals, key=lambda pair: (pair[1], pair[0]))
    used: set[int] = set()
    highest = ordered[0][1] if ordered else 0
    changes: list[Reassignment] = []

    for record_id, value in ordered:
        if value in used:
            new_value = highest + 1
            while new_value in used:
                new_value += 1
            changes.append(Reassignment(record_id=record_id, old=value, new=new_value))
            value = new_value
        used.add(value)
        highest = max(highest, value)

    return changes


class DuplicateResolver:
    """Apply :func:`plan_resolution` to the published records of a store."""

    def __init__(self, store: OrderStore, *, sync_legacy: bool = True) -> None:
        self.store = store
        self.sync_legacy = sync_legacy

    def resolve(self) -> list[Reassignment]:
        """Repair colliding ordinals and return the changes that were applied."""
        records = self.store.list(lock=True)
        if len(records) < 2:
            return []

        plan = plan_resolution((record.id, record.menu_order) for record in records)
        applied: list[Reassignment] = []
        for change in plan:
            if not self.store.set_primary_ordinal(change.record_id, change.new):
                logger.debug("Record %s vanished during duplicate sweep", change.record_id)
                continue
            if self.sync_legacy:
                self.store.set_legacy_ordinal(change.record_id, change.new)
            applied.append(change)

        if applied:
            logger.info("Resolved %d duplicate ordinals", len(applied))
        return applied
