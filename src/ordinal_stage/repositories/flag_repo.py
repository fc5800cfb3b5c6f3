"""Persistence for one-shot migration flags."""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ordinal_stage.core.errors import StoreError
from ordinal_stage.models.migration_flag import MigrationFlag

__all__ = ["MigrationFlagRepository"]

logger = logging.getLogger(__name__)


class MigrationFlagRepository:
    """Create, claim and reset named migration flags."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def ensure(self, name: str) -> None:
        """Create the flag as not-done if it does not exist yet."""
        try:
            if self.session.get(MigrationFlag, name) is not None:
                return
            with self.session.begin_nested():
                self.session.add(MigrationFlag(name=name, done=False))
        except IntegrityError:
            # A concurrent caller inserted the same flag first.
            logger.debug("Migration flag %s created concurrently", name)
        except SQLAlchemyError as err:
            raise StoreError(f"Could not create migration flag {name}") from err

    def is_done(self, name: str) -> bool:
        """Return True once the flag's routine has completed."""
        stmt = select(MigrationFlag.done).where(MigrationFlag.name == name)
        try:
            return bool(self.session.scalars(stmt).first())
        except SQLAlchemyError as err:
            raise StoreError(f"Could not read migration flag {name}") from err

    def claim(self, name: str) -> bool:
        """Atomically flip the flag from false to true.

        Only one concurrent caller observes True; the flip becomes visible to
        others when the enclosing transaction commits and disappears if it
        rolls back.
        """
        stmt = (
            update(MigrationFlag)
            .where(MigrationFlag.name == name, MigrationFlag.done.is_(False))
            .values(done=True, completed_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as err:
            raise StoreError(f"Could not claim migration flag {name}") from err
        return result.rowcount == 1

    def reset(self, name: str) -> bool:
        """Set the flag back to not-done. Returns False for unknown flags."""
        stmt = (
            update(MigrationFlag)
            .where(MigrationFlag.name == name)
            .values(done=False, completed_at=None)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as err:
            raise StoreError(f"Could not reset migration flag {name}") from err
        return bool(result.rowcount)

    def list_all(self) -> list[MigrationFlag]:
        """Return every known flag sorted by name."""
        try:
            stmt = (
                select(MigrationFlag)
                .order_by(MigrationFlag.name)
                .execution_options(populate_existing=True)
            )
            return list(self.session.scalars(stmt))
        except SQLAlchemyError as err:
            raise StoreError("Could not list migration flags") from err
