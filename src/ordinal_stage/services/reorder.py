"""Client-driven bulk reordering of published records."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ordinal_stage.core.errors import NotFoundError, StoreError, ValidationError
from ordinal_stage.models.record import Record
from ordinal_stage.repositories.record_repo import OrderStore

logger = logging.getLogger(__name__)

# Position i in the submitted list becomes ordinal i.
ORDINAL_BASE = 0


@dataclass(frozen=True)
class SaveOrderResult:
    """Outcome of a successful save."""

    requested: int
    updated_count: int
    warning: str | None = None


def validate_ordered_ids(ordered_ids: object) -> list[int]:
    """Return ``ordered_ids`` as a list of distinct positive integers.

    Raises:
        ValidationError: If the value is not a non-empty list of distinct
            positive integers.
    """
    if not isinstance(ordered_ids, list | tuple):
        raise ValidationError("Invalid order data format")
    if not ordered_ids:
        raise ValidationError("No order data provided")

    ids: list[int] = []
    seen: set[int] = set()
    for value in ordered_ids:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Invalid record id: {value!r}")
        if value <= 0:
            raise ValidationError(f"Record ids must be positive, got {value}")
        if value in seen:
            raise ValidationError(f"Record id {value} appears more than once")
        seen.add(value)
        ids.append(value)
    return ids


class ReorderService:
    """List records for editing and persist client-submitted orders."""

    def __init__(self, session: Session, store: OrderStore | None = None) -> None:
        self.session = session
        self.store = store or OrderStore(session)

    def list_for_editing(self) -> list[Record]:
        """Return published records in their current order."""
        return self.store.list_ordered()

    def save_order(self, ordered_ids: object) -> SaveOrderResult:
        """Replace the ordinals of the given records with their list positions.

        The whole call is one unit: it either commits every position or
        leaves all records as they were.

        Raises:
            ValidationError: Malformed input.
            NotFoundError: An id does not name a published record.
            StoreError: The store failed; nothing was written.
        """
        ids = validate_ordered_ids(ordered_ids)

        try:
            with self.session.begin_nested():
                found = self.store.find_published(ids, lock=True)
                missing = [record_id for record_id in ids if record_id not in found]
                if missing:
                    raise NotFoundError(
                        f"Records not found: {', '.join(str(m) for m in missing)}",
                        missing_ids=missing,
                    )

                updated = 0
                for position, record_id in enumerate(ids, start=ORDINAL_BASE):
                    if not self.store.set_primary_ordinal(record_id, position):
                        logger.warning("Record %s disappeared during save", record_id)
                        continue
                    self.store.set_legacy_ordinal(record_id, position)
                    updated += 1
                    logger.debug("Updated record %s to order %s", record_id, position)
            self.session.commit()
        except SQLAlchemyError as err:
            raise StoreError("Failed to update record order") from err

        warning = None
        if updated < len(ids):
            warning = f"Only {updated} of {len(ids)} records were updated; reload the order"
        logger.info("Saved order for %d records", updated)
        return SaveOrderResult(requested=len(ids), updated_count=updated, warning=warning)
