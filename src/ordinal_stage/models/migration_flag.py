# src/ordinal_stage/models/migration_flag.py
"""Persisted one-shot markers for data-fixing routines."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from ordinal_stage.db.session import Base


class MigrationFlag(Base):
    """Named boolean created false and flipped to true once its routine completes."""

    __tablename__ = "migration_flag"

    name: Mapped[str] = mapped_column(Text, primary_key=True)
    done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
