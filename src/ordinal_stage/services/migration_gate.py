"""Run one-time data-fixing routines exactly once."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ordinal_stage.core.errors import StoreError
from ordinal_stage.repositories.flag_repo import MigrationFlagRepository

logger = logging.getLogger(__name__)

# Flag names
FLAG_ORDER_MIGRATED = "order_migrated"
FLAG_DUPLICATES_FIXED = "duplicates_fixed"
KNOWN_FLAGS = (FLAG_ORDER_MIGRATED, FLAG_DUPLICATES_FIXED)


@dataclass(frozen=True)
class GateOutcome:
    """Whether a guarded body ran, and what it returned."""

    name: str
    ran: bool
    result: Any = None


class MigrationGate:
    """Guard a routine with a persisted flag.

    The flag is claimed with a compare-and-swap and the body runs inside the
    same savepoint, so a failing body leaves the flag unset and a concurrent
    caller that loses the claim returns without running the body.
    """

    def __init__(self, session: Session, flags: MigrationFlagRepository | None = None) -> None:
        self.session = session
        self.flags = flags or MigrationFlagRepository(session)

    def run_once(self, name: str, body: Callable[[], Any]) -> GateOutcome:
        """Run ``body`` unless flag ``name`` is already set.

        Raises:
            StoreError: If the flag cannot be read or committed.
            Exception: Whatever ``body`` raises; the flag stays unset.
        """
        if self.flags.is_done(name):
            return GateOutcome(name=name, ran=False)

        self.flags.ensure(name)
        with self.session.begin_nested():
            if not self.flags.claim(name):
                logger.debug("Migration %s already claimed by another caller", name)
                return GateOutcome(name=name, ran=False)
            result = body()

        try:
            self.session.commit()
        except SQLAlchemyError as err:
            raise StoreError(f"Could not commit migration {name}") from err
        logger.info("Migration %s completed", name)
        return GateOutcome(name=name, ran=True, result=result)

    def reset(self, name: str) -> bool:
        """Clear flag ``name`` so the routine runs again on the next trigger."""
        changed = self.flags.reset(name)
        try:
            self.session.commit()
        except SQLAlchemyError as err:
            raise StoreError(f"Could not reset migration {name}") from err
        if changed:
            logger.info("Migration flag %s reset", name)
        return changed
