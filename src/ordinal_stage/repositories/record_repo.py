"""Data access helpers for orderable records."""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ordinal_stage.core.errors import StoreError
from ordinal_stage.core.settings import settings
from ordinal_stage.models.record import RECORD_STATUS_PUBLISHED, Record

__all__ = ["OrderStore"]


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as err:
        raise StoreError(f"Record store failure during {operation}") from err


class OrderStore:
    """Thin wrapper around database access for records of the managed type.

    Every setter is a single UPDATE statement and therefore atomic for one
    record. Grouping several updates into one unit is the caller's job.
    """

    def __init__(self, session: Session, record_type: str | None = None) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session
        self.record_type = record_type or settings.managed_record_type

    def list(self, status: str = RECORD_STATUS_PUBLISHED, *, lock: bool = False) -> list[Record]:
        """Return records with ``status``; no ordering is guaranteed.

        With ``lock`` every returned row is locked (``SELECT ... FOR UPDATE``)
        in id order until the transaction ends, so sweeps serialize against
        concurrent saves.
        """
        stmt = (
            select(Record)
            .where(Record.record_type == self.record_type, Record.status == status)
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.order_by(Record.id).with_for_update()
        with _store_errors("list"):
            return list(self.session.scalars(stmt))

    def list_ordered(
        self,
        status: str = RECORD_STATUS_PUBLISHED,
        limit: int | None = None,
    ) -> list[Record]:
        """Return records sorted by ``menu_order`` then id."""
        stmt = (
            select(Record)
            .where(Record.record_type == self.record_type, Record.status == status)
            .order_by(Record.menu_order.asc(), Record.id.asc())
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with _store_errors("list_ordered"):
            return list(self.session.scalars(stmt))

    def get(self, record_id: int) -> Record | None:
        """Return a record of the managed type by identifier."""
        stmt = select(Record).where(
            Record.id == record_id,
            Record.record_type == self.record_type,
        )
        with _store_errors("get"):
            return self.session.scalars(stmt).first()

    def find_published(self, record_ids: Iterable[int], *, lock: bool = False) -> dict[int, Record]:
        """Return the published records among ``record_ids`` keyed by id.

        Args:
            record_ids: Identifiers to look up.
            lock: Take row locks (``SELECT ... FOR UPDATE``) where the
                backend supports them.
        """
        ids = list(record_ids)
        if not ids:
            return {}
        stmt = select(Record).where(
            Record.id.in_(ids),
            Record.record_type == self.record_type,
            Record.status == RECORD_STATUS_PUBLISHED,
        )
        if lock:
            # Lock in id order so overlapping saves cannot deadlock.
            stmt = stmt.order_by(Record.id).with_for_update()
        with _store_errors("find_published"):
            return {record.id: record for record in self.session.scalars(stmt)}

    def set_primary_ordinal(self, record_id: int, value: int) -> bool:
        """Set ``menu_order`` on one published record.

        Returns:
            False when no published record with that id exists.
        """
        return self._update(record_id, menu_order=int(value))

    def set_legacy_ordinal(self, record_id: int, value: int | None) -> bool:
        """Set or clear ``legacy_order`` on one published record."""
        return self._update(record_id, legacy_order=None if value is None else int(value))

    def _update(self, record_id: int, **values: int | None) -> bool:
        stmt = (
            update(Record)
            .where(
                Record.id == record_id,
                Record.record_type == self.record_type,
                Record.status == RECORD_STATUS_PUBLISHED,
            )
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        with _store_errors("update"):
            result = self.session.execute(stmt)
        return bool(result.rowcount)
